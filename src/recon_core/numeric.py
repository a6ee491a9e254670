"""Approximate-equality primitives shared by the reconciler and the diff engine."""

from __future__ import annotations

import math

AMOUNT_TOLERANCE = 0.01


def is_finite_number(value: object) -> bool:
    """True for int/float values that are not NaN or infinite (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_positive_rate(rate: object) -> bool:
    return is_finite_number(rate) and rate > 0  # type: ignore[operator]


def approx_equal(a: float, b: float, tolerance: float = AMOUNT_TOLERANCE) -> bool:
    """|a - b| <= tolerance."""
    return abs(a - b) <= tolerance


def differs(a: float, b: float, tolerance: float = AMOUNT_TOLERANCE) -> bool:
    """|a - b| > tolerance."""
    return abs(a - b) > tolerance
