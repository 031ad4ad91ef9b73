"""
Numeric helpers shared by the cost and progress aggregators.

Construction data arrives half-entered: blank quantities, "N/A" unit costs,
progress sliders pushed past 100. Every numeric field is resolved here,
explicitly, instead of relying on truthiness at the call site.

Rounding is ROUND_HALF_UP on the decimal representation of the value, so
2.675 rounds to 2.68 (the float 2.675 would round down with ``round()``).
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

CURRENCY_PLACES: int = 2
PERCENT_MIN: float = 0.0
PERCENT_MAX: float = 100.0


def to_optional_number(value: Any) -> Optional[float]:
    """
    Coerce a raw field value into a finite float, or ``None`` if it is not one.

    Accepts ints, floats, Decimals and numeric strings ("12.5", " 3 ").
    Booleans, NaN/inf, blank strings and anything else become ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def unwrap_or_zero(value: Optional[float]) -> float:
    """Resolve a missing numeric field to 0.0."""
    if value is None:
        return 0.0
    return float(value)


def clamp_non_negative(value: float) -> float:
    return value if value > 0.0 else 0.0


def clamp_percent(value: float) -> float:
    return min(max(value, PERCENT_MIN), PERCENT_MAX)


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def round_currency(value: float, places: int = CURRENCY_PLACES) -> float:
    """Round to the smallest currency unit, half-up."""
    quantum = Decimal(1).scaleb(-places)
    return float(_to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round_percent(value: float) -> int:
    """Whole-percent presentation value, half-up (37.5 -> 38, 12.5 -> 13)."""
    return int(_to_decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def sum_currency(values: Iterable[float], places: int = CURRENCY_PLACES) -> float:
    """
    Sum monetary amounts exactly, in the order given.

    The inputs are already rounded amounts; summing them as Decimals keeps the
    result free of binary float drift however many levels it is rolled up.
    """
    total = Decimal(0)
    for value in values:
        total += _to_decimal(value)
    quantum = Decimal(1).scaleb(-places)
    return float(total.quantize(quantum, rounding=ROUND_HALF_UP))


def mean(values: Iterable[float]) -> float:
    """Unweighted arithmetic mean; 0.0 for an empty sequence."""
    items = list(values)
    if not items:
        return 0.0
    return math.fsum(items) / len(items)
