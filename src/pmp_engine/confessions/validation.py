"""
Confession text acceptance rules.

All lengths are measured in code points on the trimmed text:
- at least 120 characters
- no single character above 60% of the text
- emoji (U+1F300..U+1F9FF) at most 70% of the non-whitespace characters
- whitespace at most 70% of the text
"""

import re
from collections import Counter

MIN_LENGTH = 120
MAX_REPETITION_RATIO = 0.6
MAX_EMOJI_RATIO = 0.7
MAX_WHITESPACE_RATIO = 0.7

EMOJI_PATTERN = re.compile("[\U0001F300-\U0001F9FF]")
WHITESPACE_PATTERN = re.compile(r"\s")


class TextCheck:
    """Result of confession text validation."""

    __slots__ = ("valid", "message")

    def __init__(self, valid: bool, message: str = ""):
        self.valid = valid
        self.message = message


def validate_confession(text) -> TextCheck:
    if not text or not isinstance(text, str):
        return TextCheck(False, "Confession text is required")

    trimmed = text.strip()
    length = len(trimmed)
    if length == 0:
        return TextCheck(False, "Confession text cannot be empty")

    if length < MIN_LENGTH:
        return TextCheck(False, f"Confession must be at least {MIN_LENGTH} characters long")

    most_common = Counter(trimmed).most_common(1)[0][1]
    if most_common / length > MAX_REPETITION_RATIO:
        return TextCheck(False, "Confession contains too much repetition")

    whitespace_count = len(WHITESPACE_PATTERN.findall(trimmed))
    non_whitespace = length - whitespace_count
    emoji_count = len(EMOJI_PATTERN.findall(trimmed))
    if non_whitespace > 0 and emoji_count / non_whitespace > MAX_EMOJI_RATIO:
        return TextCheck(False, "Confession cannot be mostly emojis")

    if whitespace_count / length > MAX_WHITESPACE_RATIO:
        return TextCheck(False, "Confession cannot be mostly whitespace")

    return TextCheck(True)
