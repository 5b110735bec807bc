"""
Tests for preview fee formatting, amount allocation and checkout links.
"""

import random

import pytest

from figurine_bot.services.payments.pricing import (
    allocate_expected_amount,
    build_checkout_url,
    format_brl,
)


@pytest.mark.parametrize(
    "cents,expected",
    [
        (1007, "R$ 10,07"),
        (1000, "R$ 10,00"),
        (5, "R$ 0,05"),
        (39900, "R$ 399,00"),
        (123456, "R$ 1.234,56"),
    ],
)
def test_format_brl(cents, expected):
    assert format_brl(cents) == expected


def test_allocated_amount_within_offset_range():
    rng = random.Random(42)
    for _ in range(200):
        amount = allocate_expected_amount(1000, 99, rng=rng)
        assert 1001 <= amount <= 1099


def test_allocation_avoids_taken_amounts():
    rng = random.Random(7)
    taken = {1001, 1002, 1003, 1004}
    for _ in range(50):
        assert allocate_expected_amount(1000, 5, taken=taken, rng=rng) == 1005


def test_allocation_when_every_amount_taken_still_returns_one():
    taken = {1001, 1002, 1003}
    amount = allocate_expected_amount(1000, 3, taken=taken, rng=random.Random(1))
    assert amount in taken


def test_allocation_uses_system_random_by_default():
    assert 1001 <= allocate_expected_amount(1000, 99) <= 1099


def test_checkout_url_carries_ref_and_amount():
    url = build_checkout_url("https://pay.example.com/preview", "abcdef0123456789", 1007)
    assert url == "https://pay.example.com/preview?ref=abcdef0123456789&valor=10.07"


def test_checkout_url_appends_to_existing_query():
    url = build_checkout_url("https://pay.example.com/p?utm=wa", "abc", 1050)
    assert url == "https://pay.example.com/p?utm=wa&ref=abc&valor=10.50"


def test_checkout_url_without_params_is_base():
    assert build_checkout_url("https://pay.example.com/p", None, None) == "https://pay.example.com/p"
