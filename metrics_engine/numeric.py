"""Null-safe numeric helpers shared by every calculator.

Every helper returns either a finite float or None. Ratios stay as
fractions (0.25, not 25); presentation is left to the caller.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np


def to_float(value: object) -> float | None:
    """Coerce a scalar to a finite float.

    Args:
        value: Number, numeric string, numpy scalar, None or anything else.

    Returns:
        Finite float, or None for missing, non-numeric, boolean, NaN or
        infinite input.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f):
        return None
    return f


def _finite(value: float) -> float | None:
    return value if math.isfinite(value) else None


def safe_divide(numerator: float | None, denominator: float | None) -> float | None:
    """Divide, returning None for a missing operand or a zero denominator."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    return _finite(numerator / denominator)


def positive_divide(
    numerator: float | None, denominator: float | None
) -> float | None:
    """Divide only when the denominator is strictly positive.

    Used where a negative denominator would invert the meaning of the
    ratio (negative equity, negative EBITDA, non-positive EPS).
    """
    if denominator is None or denominator <= 0:
        return None
    return safe_divide(numerator, denominator)


def safe_multiply(*values: float | None) -> float | None:
    """Product of all values, or None if any is missing."""
    result = 1.0
    for value in values:
        if value is None:
            return None
        result *= value
    return _finite(result)


def safe_add(*values: float | None) -> float | None:
    """Sum of all values, or None if any is missing."""
    if any(value is None for value in values):
        return None
    return _finite(sum(values))  # type: ignore[arg-type]


def safe_subtract(a: float | None, b: float | None) -> float | None:
    """a - b, or None if either is missing."""
    if a is None or b is None:
        return None
    return _finite(a - b)


def pct_change(current: float | None, prior: float | None) -> float | None:
    """Period-over-period change relative to the magnitude of the prior value.

    Dividing by |prior| keeps the sign meaningful when the prior value is
    negative (a loss shrinking towards zero reads as positive growth).
    """
    if current is None or prior is None or prior == 0:
        return None
    return _finite((current - prior) / abs(prior))


def cagr(
    beginning: float | None, ending: float | None, years: float
) -> float | None:
    """Compound annual growth rate.

    Args:
        beginning: Value at the start of the window. Must be positive.
        ending: Value at the end of the window. Must be non-negative.
        years: Length of the window in years.

    Returns:
        (ending / beginning) ** (1 / years) - 1, or None when undefined.
    """
    if beginning is None or ending is None or years <= 0:
        return None
    if beginning <= 0 or ending < 0:
        return None
    try:
        return _finite((ending / beginning) ** (1.0 / years) - 1.0)
    except OverflowError:
        return None


def _clean(values: Iterable[float | None]) -> np.ndarray:
    arr = np.asarray(
        [v for v in values if v is not None], dtype=float
    )
    return arr[np.isfinite(arr)]


def mean(values: Iterable[float | None]) -> float | None:
    """Arithmetic mean of at least two finite values."""
    arr = _clean(values)
    if arr.size < 2:
        return None
    return _finite(float(arr.mean()))


def sample_std(values: Iterable[float | None]) -> float | None:
    """Sample standard deviation (ddof=1) of at least two finite values."""
    arr = _clean(values)
    if arr.size < 2:
        return None
    return _finite(float(arr.std(ddof=1)))


def covariance(xs: Sequence[float], ys: Sequence[float]) -> float | None:
    """Sample covariance of two equal-length series of at least two points."""
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.size != y.size or x.size < 2:
        return None
    if not (np.isfinite(x).all() and np.isfinite(y).all()):
        return None
    return _finite(float(np.cov(x, y, ddof=1)[0, 1]))


def correlation(xs: Sequence[float], ys: Sequence[float]) -> float | None:
    """Pearson correlation, None when either series has zero variance."""
    cov = covariance(xs, ys)
    sx = sample_std(xs)
    sy = sample_std(ys)
    if cov is None or sx is None or sy is None:
        return None
    return safe_divide(cov, sx * sy)


def clamp(value: float, low: float, high: float) -> float:
    """Bound value to [low, high]."""
    return max(low, min(high, value))


def normalize_to_scale(value: float | None, low: float, high: float) -> float | None:
    """Map value linearly from [low, high] onto [0, 100], clamped."""
    if value is None or high == low:
        return None
    return clamp((value - low) / (high - low) * 100.0, 0.0, 100.0)


def weighted_average(
    pairs: Iterable[tuple[float | None, float]]
) -> float | None:
    """Weighted mean over the pairs whose value is present.

    Weights are renormalised over the available values, so a missing
    constituent neither counts as zero nor blocks the result.

    Args:
        pairs: (value, weight) tuples. Values may be None.

    Returns:
        Weighted mean, or None if no value is present.
    """
    total = 0.0
    weight_sum = 0.0
    for value, weight in pairs:
        if value is None:
            continue
        total += value * weight
        weight_sum += weight
    if weight_sum == 0:
        return None
    return _finite(total / weight_sum)


def round_optional(value: float | None, digits: int | None) -> float | None:
    """Round for output; None and digits=None pass through unchanged."""
    if value is None or digits is None:
        return value
    return round(value, digits)
