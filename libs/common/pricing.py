"""Money and delivery-fee helpers shared by the storefront client and services.

All amounts are ``Decimal`` quantized to centavos (2 decimal places).

Delivery fee tiers
------------------
0 items      → 0
1–3 items    → BASE_DELIVERY_FEE
4–6 items    → BASE + EXTRA
7–9 items    → BASE + 2 × EXTRA
…one more EXTRA for every further group of up to 3 items.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

# ─── constants ───────────────────────────────────────────────────────────────

BASE_DELIVERY_FEE: Decimal = Decimal("5")
EXTRA_DELIVERY_FEE: Decimal = Decimal("5")
ITEMS_PER_FEE_GROUP: int = 3

CENTS = Decimal("0.01")

Number = Union[Decimal, int, float, str]


# ─── helpers ─────────────────────────────────────────────────────────────────


def quantize(amount: Number) -> Decimal:
    """Round an amount to 2 decimal places (half-up)."""
    if isinstance(amount, float):
        amount = str(amount)
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def delivery_fee(total_quantity: int) -> Decimal:
    """Delivery fee for a cart holding ``total_quantity`` items."""
    if total_quantity < 0:
        raise ValueError("total_quantity must be >= 0")
    if total_quantity == 0:
        return quantize(0)
    if total_quantity <= ITEMS_PER_FEE_GROUP:
        return quantize(BASE_DELIVERY_FEE)

    extra_groups = (total_quantity - (ITEMS_PER_FEE_GROUP + 1)) // ITEMS_PER_FEE_GROUP + 1
    return quantize(BASE_DELIVERY_FEE + EXTRA_DELIVERY_FEE * extra_groups)


def line_total(unit_price: Number, quantity: int) -> Decimal:
    return quantize(Decimal(str(unit_price)) * quantity)


def sum_amounts(amounts: Iterable[Number]) -> Decimal:
    total = Decimal("0")
    for amount in amounts:
        total += quantize(amount)
    return quantize(total)


def format_amount(amount: Number, symbol: str = "₱") -> str:
    """Display form used in notices and emails, e.g. ``₱125.50``."""
    return f"{symbol}{quantize(amount):,.2f}"
