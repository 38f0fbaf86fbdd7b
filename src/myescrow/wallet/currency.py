"""Money conversions. Integer cents are canonical; dollars only at the edges."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

# Largest single amount accepted on the wire, in dollars.
MAX_AMOUNT_DOLLARS = 10_000_000_000_000
# Money columns are signed 64-bit integers.
MAX_BALANCE_CENTS = 2**63 - 1


def dollars_to_cents(amount: float) -> int:
    """Convert a decimal dollar amount to integer cents, rounding half up.

    Non-finite input maps to 0.
    """
    if not math.isfinite(amount):
        return 0
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_dollars(value_in_cents: int) -> float:
    return float(Decimal(value_in_cents) / 100)


def format_currency_from_cents(value_in_cents: int) -> str:
    """Format cents as en-US dollars: ``123456`` -> ``$1,234.56``."""
    sign = "-" if value_in_cents < 0 else ""
    dollars, cents = divmod(abs(value_in_cents), 100)
    return f"{sign}${dollars:,}.{cents:02d}"


def format_amount_with_suffix(value_in_cents: int, suffix: str = "held") -> str:
    return f"{format_currency_from_cents(value_in_cents)} {suffix}".strip()
