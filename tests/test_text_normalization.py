"""
Unit tests for phone and message text normalization (pure functions).
"""

import pytest

from figurine_bot.services.text_normalization import (
    first_name,
    normalize_command,
    normalize_phone,
    normalize_text,
    only_digits,
)

# --- normalize_phone ---


def test_normalize_phone_prepends_country_code():
    assert normalize_phone("11999998888") == "5511999998888"


def test_normalize_phone_keeps_existing_country_code():
    assert normalize_phone("5511999998888") == "5511999998888"


def test_normalize_phone_prefix_added_exactly_once():
    once = normalize_phone("11999998888")
    assert normalize_phone(once) == once


@pytest.mark.parametrize(
    "raw",
    ["+55 (11) 99999-8888", "55 11 99999 8888", "5511999998888@c.us"],
)
def test_normalize_phone_strips_formatting(raw):
    assert normalize_phone(raw) == "5511999998888"


def test_normalize_phone_accepts_int():
    assert normalize_phone(11999998888) == "5511999998888"


@pytest.mark.parametrize("raw", [None, "", "   ", "abc"])
def test_normalize_phone_empty(raw):
    assert normalize_phone(raw) == ""


def test_normalize_phone_custom_country_code():
    assert normalize_phone("2015550123", country_code="1") == "12015550123"


def test_only_digits():
    assert only_digits("(11) 9-8") == "1198"
    assert only_digits(None) == ""


# --- normalize_text ---


def test_normalize_text_strips_and_collapses_whitespace():
    assert normalize_text("  oi   tudo\n\tbem  ") == "oi tudo bem"


def test_normalize_text_replaces_nbsp_and_removes_zero_width():
    assert normalize_text("pixar\u00a0realista\u200b\ufeff") == "pixar realista"


def test_normalize_text_composes_accents():
    # "i" + combining acute accent -> single precomposed character
    assert normalize_text("ini\u0301cio") == "in\u00edcio"


@pytest.mark.parametrize("raw", [None, "", "   ", 123])
def test_normalize_text_non_text(raw):
    assert normalize_text(raw) == ""


def test_normalize_command_lowercases():
    assert normalize_command("  MENU ") == "menu"


# --- first_name ---


def test_first_name():
    assert first_name("Ana Maria Souza") == "Ana"
    assert first_name("  Bruno ") == "Bruno"
    assert first_name("") is None
    assert first_name(None) is None
