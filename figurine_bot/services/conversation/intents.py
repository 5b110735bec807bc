"""
Pure keyword helpers for the chat flow (no IO).

Intent detection is fixed keyword/regex matching on normalized, lowercased
text; every helper here takes the raw message and normalizes it itself.
"""

import re

from figurine_bot.constants.states import MiniSize, MiniStyle
from figurine_bot.services.text_normalization import normalize_command

MENU_KEYWORDS = frozenset({"menu", "voltar", "inicio", "início", "começar", "comecar"})


def is_menu_command(message_text: str) -> bool:
    """True if the message asks to restart from the main menu."""
    return normalize_command(message_text) in MENU_KEYWORDS


HUMAN_REQUEST_PHRASES = ("humano", "atendente", "falar com alguem", "falar com alguém")


def is_human_request(message_text: str) -> bool:
    """True if the message asks for a person ("humano", "atendente", "falar com alguém")."""
    text = normalize_command(message_text)
    return any(phrase in text for phrase in HUMAN_REQUEST_PHRASES)


PAID_KEYWORDS = frozenset({"pago", "pago!", "paguei"})


def is_paid_assertion(message_text: str) -> bool:
    """True if the customer claims to have paid ("paguei", "já paguei", "pago")."""
    text = normalize_command(message_text)
    return text in PAID_KEYWORDS or "paguei" in text


MAIN_CHOICES = {"1": "1", "1\ufe0f\u20e3": "1", "2": "2", "2\ufe0f\u20e3": "2"}


def parse_main_choice(message_text: str) -> str | None:
    """Main menu pick: "1" (mascots) or "2" (custom miniatures), else None."""
    return MAIN_CHOICES.get(normalize_command(message_text))


_STYLE_NUMBERS = {
    "1": MiniStyle.REALISTIC,
    "2": MiniStyle.PIXAR,
    "3": MiniStyle.PIXAR_REALISTIC,
    "4": MiniStyle.CARTOON,
    "5": MiniStyle.ANIME,
}
_STYLE_NUMBER_RE = re.compile(r"^(?:op[cç][aã]o\s*)?([1-5])(?:\ufe0f?\u20e3)?[.)]?$")

# "pixar" together with "realista" (any order, "pixar-realista") is checked before these
_STYLE_KEYWORDS = (
    ("pixar", MiniStyle.PIXAR),
    ("realista", MiniStyle.REALISTIC),
    ("cartoon", MiniStyle.CARTOON),
    ("desenho", MiniStyle.CARTOON),
    ("anime", MiniStyle.ANIME),
    ("mangá", MiniStyle.ANIME),
    ("manga", MiniStyle.ANIME),
)


def parse_style(message_text: str) -> MiniStyle | None:
    """
    Match the 5-way style menu by number or keyword.

    Examples:
        "3"               -> PIXAR_REALISTIC
        "quero pixar realista" -> PIXAR_REALISTIC
        "realista pixar"  -> PIXAR_REALISTIC
        "desenho"         -> CARTOON
        "pineapple"       -> None
    """
    text = normalize_command(message_text)
    if not text:
        return None

    match = _STYLE_NUMBER_RE.match(text)
    if match:
        return _STYLE_NUMBERS[match.group(1)]

    text = re.sub(r"[-_/]+", " ", text)
    if "pixar" in text and "realista" in text:
        return MiniStyle.PIXAR_REALISTIC
    for keyword, style in _STYLE_KEYWORDS:
        if keyword in text:
            return style
    return None


_SIZE_16_RE = re.compile(r"\b(?:16|16 ?cm)\b")
_SIZE_21_RE = re.compile(r"\b(?:21|21 ?cm)\b")


def parse_size(message_text: str) -> MiniSize | None:
    """Size keyword: "16", "16cm" or "16 cm" -> 16cm (same for 21), else None."""
    text = normalize_command(message_text)
    if _SIZE_16_RE.search(text):
        return MiniSize.SIZE_16
    if _SIZE_21_RE.search(text):
        return MiniSize.SIZE_21
    return None
