"""Null-safe ratio helpers shared by every aggregation.

`None` always means "no comparable data"; it is never coerced to zero.
"""

from __future__ import annotations


def safe_div(n: float, d: float | None) -> float | None:
    """Return `n / d`, or None when `d` is missing or zero."""
    if d is None or d == 0:
        return None
    return n / d


def growth_pct(current: float | None, previous: float | None) -> float | None:
    """Percentage change from `previous` to `current`.

    Args:
        current: Value for the current period.
        previous: Value for the comparison period.

    Returns:
        `(current - previous) / previous * 100`, or None when either side is
        missing or `previous` is zero.
    """
    if current is None:
        return None
    r = safe_div(current - previous, previous) if previous is not None else None
    return None if r is None else r * 100.0


def mean_or_none(total: float | None, count: int) -> float | None:
    """Mean over `count` populated days, None when nothing was populated."""
    if total is None or count == 0:
        return None
    return total / count
