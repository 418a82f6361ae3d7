"""Tests for confession text acceptance rules."""

import string

import pytest

from pmp_engine.confessions.validation import MIN_LENGTH, validate_confession

BASE = "the quick brown fox jumps over the lazy dog "


def prose(n: int) -> str:
    """Ordinary text of exactly ``n`` characters with no edge whitespace."""
    text = (BASE * (n // len(BASE) + 1))[:n]
    if text[-1].isspace():
        text = text[:-1] + "x"
    return text


def emojis(n: int) -> str:
    return "".join(chr(0x1F300 + i % 40) for i in range(n))


class TestPresence:
    @pytest.mark.parametrize("value", [None, "", 42, ["text"]])
    def test_required(self, value):
        check = validate_confession(value)
        assert check.valid is False
        assert check.message == "Confession text is required"

    def test_whitespace_only(self):
        check = validate_confession("   \n\t  ")
        assert check.valid is False
        assert check.message == "Confession text cannot be empty"


class TestLength:
    def test_minimum_accepted(self):
        assert validate_confession(prose(MIN_LENGTH)).valid is True

    def test_one_short(self):
        check = validate_confession(prose(MIN_LENGTH - 1))
        assert check.valid is False
        assert check.message == "Confession must be at least 120 characters long"

    def test_length_measured_after_trim(self):
        padded = "      " + prose(MIN_LENGTH - 1) + "      "
        assert validate_confession(padded).valid is False

    def test_counts_code_points(self):
        # 120 accented characters are 120, not 240 bytes' worth
        text = ("é" + "abcdefghij") * 10 + "é" * 10
        assert len(text) == 120
        assert validate_confession(text).valid is True


class TestRepetition:
    def test_single_character(self):
        check = validate_confession("a" * 150)
        assert check.valid is False
        assert check.message == "Confession contains too much repetition"

    def test_mostly_one_character(self):
        text = "a" * 80 + string.ascii_lowercase[1:] + "b" * 20
        assert validate_confession(text).valid is False

    def test_sixty_percent_allowed(self):
        text = "a" * 72 + (string.ascii_uppercase * 2)[:48]
        assert len(text) == 120
        assert validate_confession(text).valid is True


class TestEmoji:
    def test_mostly_emoji(self):
        check = validate_confession(emojis(130))
        assert check.valid is False
        assert check.message == "Confession cannot be mostly emojis"

    def test_seventy_percent_allowed(self):
        letters = string.ascii_letters
        text = letters[:15] + " " * 20 + emojis(70) + letters[15:30]
        assert len(text) == 120
        assert validate_confession(text).valid is True

    def test_just_over_seventy_percent(self):
        letters = string.ascii_letters
        text = letters[:14] + " " * 20 + emojis(71) + letters[14:29]
        assert len(text) == 120
        check = validate_confession(text)
        assert check.valid is False
        assert check.message == "Confession cannot be mostly emojis"


class TestWhitespace:
    def test_mostly_whitespace(self):
        text = "abcdefghij" + " \t\n" * 40 + "klmnopqrst"
        check = validate_confession(text)
        assert check.valid is False
        assert check.message == "Confession cannot be mostly whitespace"

    def test_normal_spacing(self):
        assert validate_confession(prose(300)).valid is True


class TestOrdering:
    def test_length_before_repetition(self):
        check = validate_confession("a" * 50)
        assert check.message == "Confession must be at least 120 characters long"

    def test_repetition_before_whitespace(self):
        # spaces dominate both rules; repetition is reported first
        text = "ab" + " " * 130 + "cd"
        assert validate_confession(text).message == "Confession contains too much repetition"
