"""
Unit tests for keyword intent helpers (no IO).
"""

import pytest

from figurine_bot.constants.states import MiniSize, MiniStyle
from figurine_bot.services.conversation.intents import (
    is_human_request,
    is_menu_command,
    is_paid_assertion,
    parse_main_choice,
    parse_size,
    parse_style,
)

# --- menu ---


@pytest.mark.parametrize("text", ["menu", "MENU", " voltar ", "inicio", "início", "começar", "comecar"])
def test_is_menu_command_true(text):
    assert is_menu_command(text) is True


@pytest.mark.parametrize("text", ["menu por favor", "oi", "", "voltar depois"])
def test_is_menu_command_false(text):
    assert is_menu_command(text) is False


# --- human ---


@pytest.mark.parametrize(
    "text",
    ["humano", "quero falar com um HUMANO", "atendente", "falar com alguém", "falar com alguem"],
)
def test_is_human_request_true(text):
    assert is_human_request(text) is True


@pytest.mark.parametrize("text", ["oi", "pixar", "falar"])
def test_is_human_request_false(text):
    assert is_human_request(text) is False


# --- paid ---


@pytest.mark.parametrize("text", ["paguei", "Pago", "pago!", "já paguei", "ja paguei", "paguei sim"])
def test_is_paid_assertion_true(text):
    assert is_paid_assertion(text) is True


@pytest.mark.parametrize("text", ["vou pagar", "quanto é o pagamento", "pagou?"])
def test_is_paid_assertion_false(text):
    assert is_paid_assertion(text) is False


# --- main choice ---


@pytest.mark.parametrize(
    "text,expected",
    [("1", "1"), (" 2 ", "2"), ("1\ufe0f\u20e3", "1"), ("3", None), ("12", None), ("um", None)],
)
def test_parse_main_choice(text, expected):
    assert parse_main_choice(text) == expected


# --- style ---


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1", MiniStyle.REALISTIC),
        ("2", MiniStyle.PIXAR),
        ("3", MiniStyle.PIXAR_REALISTIC),
        ("4", MiniStyle.CARTOON),
        ("5", MiniStyle.ANIME),
        ("3\ufe0f\u20e3", MiniStyle.PIXAR_REALISTIC),
        ("opção 4", MiniStyle.CARTOON),
        ("realista", MiniStyle.REALISTIC),
        ("Pixar", MiniStyle.PIXAR),
        ("pixar realista", MiniStyle.PIXAR_REALISTIC),
        ("quero o PIXAR REALISTA", MiniStyle.PIXAR_REALISTIC),
        ("pixar-realista", MiniStyle.PIXAR_REALISTIC),
        ("realista pixar", MiniStyle.PIXAR_REALISTIC),
        ("Pixar_Realista", MiniStyle.PIXAR_REALISTIC),
        ("desenho", MiniStyle.CARTOON),
        ("cartoon", MiniStyle.CARTOON),
        ("anime", MiniStyle.ANIME),
        ("mangá", MiniStyle.ANIME),
    ],
)
def test_parse_style(text, expected):
    assert parse_style(text) is expected


@pytest.mark.parametrize("text", ["pineapple", "6", "0", "", "16"])
def test_parse_style_invalid(text):
    assert parse_style(text) is None


# --- size ---


@pytest.mark.parametrize(
    "text,expected",
    [
        ("16", MiniSize.SIZE_16),
        ("16cm", MiniSize.SIZE_16),
        ("16 cm", MiniSize.SIZE_16),
        ("quero 16cm", MiniSize.SIZE_16),
        ("21", MiniSize.SIZE_21),
        ("21CM", MiniSize.SIZE_21),
        ("a de 21 cm por favor", MiniSize.SIZE_21),
    ],
)
def test_parse_size(text, expected):
    assert parse_size(text) is expected


@pytest.mark.parametrize("text", ["160", "216", "grande", "1", ""])
def test_parse_size_invalid(text):
    assert parse_size(text) is None
