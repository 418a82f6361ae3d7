"""PMP-Engine: confession tickets, abuse guards and lottery claims."""

from pmp_engine.confessions.validation import validate_confession
from pmp_engine.guard.hashing import compute_identity, hash_fingerprint, hash_ip, hash_text
from pmp_engine.tickets.generator import generate_ticket_code
from pmp_engine.tickets.validator import normalize_ticket_code, validate_ticket_code

__all__ = [
    "compute_identity",
    "generate_ticket_code",
    "hash_fingerprint",
    "hash_ip",
    "hash_text",
    "normalize_ticket_code",
    "validate_confession",
    "validate_ticket_code",
]
__version__ = "0.1.0"
