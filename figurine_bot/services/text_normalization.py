"""
Text normalization for inbound identifiers and message bodies.

WhatsApp copy/paste brings non-breaking spaces, zero-width chars and
mixed case; phone numbers arrive with or without the country prefix and
with formatting characters.
"""

import re
import unicodedata

NBSP = "\u00A0"
ZWSP = "\u200B"
ZWNBSP = "\uFEFF"

_NON_DIGITS = re.compile(r"\D")


def only_digits(value: object) -> str:
    """Strip everything but 0-9 from value (None -> "")."""
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def normalize_phone(phone: object, country_code: str = "55") -> str:
    """
    Canonicalize a phone identifier to digits with the country prefix.

    The prefix is prepended exactly once: numbers already starting with it
    are returned unchanged.

    Examples:
        "11999998888"        -> "5511999998888"
        "+55 (11) 99999-8888" -> "5511999998888"
        ""                   -> ""
    """
    digits = only_digits(phone)
    if not digits:
        return ""
    return digits if digits.startswith(country_code) else f"{country_code}{digits}"


def normalize_text(text: str | None) -> str:
    """
    Normalize message text: strip, fix common unicode, collapse spaces.

    Args:
        text: Raw message body (or None)

    Returns:
        Normalized string (empty string if input is None/empty)
    """
    if text is None or not isinstance(text, str):
        return ""
    s = text.replace(NBSP, " ").replace(ZWSP, "").replace(ZWNBSP, "")
    s = unicodedata.normalize("NFC", s)
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def normalize_command(text: str | None) -> str:
    """Lowercased normalize_text, used for keyword and menu matching."""
    return normalize_text(text).lower()


def first_name(display_name: str | None) -> str | None:
    """First whitespace-separated token of a contact display name."""
    name = normalize_text(display_name)
    if not name:
        return None
    return name.split(" ")[0]
