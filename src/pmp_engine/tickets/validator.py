"""
Offline ticket code format validation.

Purely syntactic: a well-formed code may never have been issued. Existence is
checked against the ticket store separately.
"""

import re

from pmp_engine.tickets.generator import (
    SEGMENT_LEN,
    TICKET_ALPHABET,
    TICKET_PREFIX,
)

TICKET_PATTERN = re.compile(
    f"^{TICKET_PREFIX}-[{TICKET_ALPHABET}]{{{SEGMENT_LEN}}}-[{TICKET_ALPHABET}]{{{SEGMENT_LEN}}}$"
)


def normalize_ticket_code(code) -> str:
    """Trim and uppercase; non-strings normalize to ''."""
    if not code or not isinstance(code, str):
        return ""
    return code.strip().upper()


def validate_ticket_code(code) -> bool:
    """True if ``code`` (after normalization) has the exact ticket format."""
    normalized = normalize_ticket_code(code)
    if not normalized:
        return False
    return TICKET_PATTERN.match(normalized) is not None
