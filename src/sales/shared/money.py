"""Monetary rounding helpers. Amounts are BRL floats rounded to cents."""

from decimal import ROUND_HALF_UP, Decimal

CURRENCY = "BRL"

_CENT = Decimal("0.01")


def round_money(value: float) -> float:
    """Round half-up to cents (``round()`` alone is banker's rounding on binary floats)."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def line_total(unit_price: float, quantity: int) -> float:
    return round_money(unit_price * quantity)


def to_cents(value: float) -> int:
    return int((Decimal(str(value)) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> float:
    return float(Decimal(cents) / 100)
