# storefront/services/pricing.py
# Денежная арифметика в Decimal: подытог, налог по единой ставке, итог.
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

CENT = Decimal("0.01")


def quantize_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value) -> str:
    return f"{quantize_money(value):.2f}"


def format_rate(rate: Decimal) -> str:
    """0.10 -> '10%', 0.075 -> '7.5%'."""
    percent = (Decimal(rate) * 100).normalize()
    return f"{percent:f}%"


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def compute_totals(lines: Iterable[Tuple[Decimal, int]], tax_rate: Decimal) -> Totals:
    """lines — пары (цена за единицу, количество).

    Налог округляется до копеек один раз, итог = подытог + налог.
    """
    subtotal = sum((Decimal(price) * quantity for price, quantity in lines), Decimal("0"))
    subtotal = quantize_money(subtotal)
    tax = quantize_money(subtotal * Decimal(tax_rate))
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)
