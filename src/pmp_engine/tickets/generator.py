"""
Ticket code generator.

Format: PMP-XXXX-XXXX
- fixed "PMP" prefix
- 2 segments x 4 chars drawn uniformly from a 32-symbol alphabet
  (40 bits of entropy, ~1.1e12 codes)

The alphabet drops the look-alikes I, O, 0 and 1.
"""

import secrets

TICKET_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
TICKET_PREFIX = "PMP"
SEGMENT_LEN = 4
SEGMENTS = 2


def _random_segment() -> str:
    """Generate a random 4-char segment."""
    return "".join(secrets.choice(TICKET_ALPHABET) for _ in range(SEGMENT_LEN))


def generate_ticket_code() -> str:
    """Generate a ticket code. Uniqueness is enforced at storage, not here."""
    segments = [_random_segment() for _ in range(SEGMENTS)]
    return "-".join([TICKET_PREFIX, *segments])
