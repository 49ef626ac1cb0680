"""Shared utilities for analysis modules."""

from __future__ import annotations

import math
from typing import Any

Number = float | int


def check_number(name: str, value: Any) -> Number | None:
    """Reject anything that is not an int, float or None.

    Missing data is None and passes through. A str, bool, Decimal or other
    object is a caller bug and raises TypeError. NaN and infinities raise
    ValueError so they can never leak into a displayed metric.
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number or None, got {type(value).__name__}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return value


def or_zero(value: Number | None) -> Number:
    """Treat a missing secondary operand as 0."""
    return 0 if value is None else value


def finite_or_none(value: Number | None) -> Number | None:
    """None for results that are not finite or do not fit in a float."""
    if value is None:
        return None
    try:
        as_float = float(value)
    except OverflowError:
        return None
    return value if math.isfinite(as_float) else None


def safe_divide(numerator: Number | None, denominator: Number | None) -> float | None:
    """Divide with None/zero/overflow protection."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    try:
        return finite_or_none(numerator / denominator)
    except OverflowError:
        return None


def divide_warning(
    numerator: Number | None,
    denominator: Number | None,
    numerator_label: str,
    denominator_label: str,
) -> str | None:
    """Explain why safe_divide returned None, or None if it did not."""
    if numerator is None:
        return f"{numerator_label} unavailable"
    if denominator is None:
        return f"{denominator_label} unavailable"
    if denominator == 0:
        return f"{denominator_label} is zero"
    return None
