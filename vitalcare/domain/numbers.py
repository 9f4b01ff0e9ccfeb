"""Numeric coercion and rounding shared by BMI, classification and statistics."""

import math
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any


def coerce_number(value: Any) -> float | None:
    """Return `value` as a finite float, or None when it is absent or not numeric.

    Numeric strings are accepted (form input), including a comma as the decimal
    separator. Booleans are not numbers here.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float | Decimal):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def round_half_away(value: float, decimals: int = 0) -> float:
    """Round half away from zero (2.5 -> 3, -2.5 -> -3), unlike built-in round().

    Raises:
        ValueError: `value` is NaN or infinite.
    """
    if not math.isfinite(value):
        raise ValueError(f"Cannot round {value!r}")
    number = Decimal(repr(value))
    quantum = Decimal(1).scaleb(-decimals)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus a carry
        ctx.prec = max(ctx.prec, number.adjusted() + decimals + 2)
        rounded = number.quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def mean_half_away(values: Sequence[float], decimals: int = 0) -> float:
    """Arithmetic mean of finite `values`, summed in decimal and rounded half away from zero."""
    if not values:
        raise ValueError("mean of empty sequence")
    total = sum(
        (Decimal(v) if isinstance(v, int) else Decimal(repr(v)) for v in values), Decimal(0)
    )
    return round_half_away(float(total / len(values)), decimals)


def format_number(value: float) -> str:
    """Render without a trailing `.0` so integral readings print as integers."""
    return f"{value:g}"
