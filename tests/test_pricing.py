from decimal import Decimal

import pytest

from storefront.services.pricing import compute_totals, format_money, format_rate


@pytest.mark.parametrize(
    "lines, subtotal, tax, total",
    [
        ([("10.00", 2), ("5.00", 1)], "25.00", "2.50", "27.50"),
        ([("19.99", 3)], "59.97", "6.00", "65.97"),
        ([("0.05", 1)], "0.05", "0.01", "0.06"),
        ([("0.10", 3), ("0.20", 1)], "0.50", "0.05", "0.55"),
    ],
)
def test_compute_totals(lines, subtotal, tax, total):
    totals = compute_totals(((Decimal(p), q) for p, q in lines), Decimal("0.10"))

    assert totals.subtotal == Decimal(subtotal)
    assert totals.tax == Decimal(tax)
    assert totals.total == Decimal(total)
    assert totals.total == totals.subtotal + totals.tax


def test_format_money_always_two_places():
    assert format_money(Decimal("5.997")) == "6.00"
    assert format_money(Decimal("3")) == "3.00"


def test_format_rate():
    assert format_rate(Decimal("0.10")) == "10%"
    assert format_rate(Decimal("0.075")) == "7.5%"
