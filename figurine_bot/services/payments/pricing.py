"""
Preview fee pricing - unique due amounts and checkout links.

Each pending customer is asked for base fee + a small cent offset. The PIX
provider's notification does not reliably carry our customer id, so the
exact amount doubles as the join key between a payment and a session.
"""

import random
from collections.abc import Collection
from urllib.parse import urlencode


def format_brl(amount_cents: int) -> str:
    """1007 -> "R$ 10,07"."""
    reais, cents = divmod(int(amount_cents), 100)
    return f"R$ {reais:,}".replace(",", ".") + f",{cents:02d}"


def allocate_expected_amount(
    base_cents: int,
    max_offset_cents: int,
    taken: Collection[int] = (),
    rng: random.Random | None = None,
) -> int:
    """
    Pick base + offset (1..max_offset) cents, avoiding amounts already held by
    other pending customers. When every offset is taken, any offset is used;
    reconciliation then prefers the provider reference or the oldest claim.
    """
    rng = rng or random.SystemRandom()
    candidates = [base_cents + offset for offset in range(1, max_offset_cents + 1)]
    free = [amount for amount in candidates if amount not in taken]
    return rng.choice(free or candidates)


def build_checkout_url(base_url: str, ref: str | None, amount_cents: int | None) -> str:
    params = {}
    if ref:
        params["ref"] = ref
    if amount_cents is not None:
        params["valor"] = f"{amount_cents / 100:.2f}"
    if not params:
        return base_url
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode(params)}"
