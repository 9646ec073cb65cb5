"""CSV export and display formatting.

Dates are formatted as DD-MM-YYYY only here, at the presentation boundary;
everything upstream works with `datetime.date`.
"""

from __future__ import annotations

from datetime import date
from typing import Sequence

from daily_kpi.models import DailyRecord

MISSING = "—"


def format_ddmmyyyy(d: date | None) -> str:
    if d is None:
        return MISSING
    return f"{d.day:02d}-{d.month:02d}-{d.year:04d}"


def format_pct(x: float | None) -> str:
    """Format a growth percentage as `+1.23%`; absent values render as a dash."""
    if x is None:
        return MISSING
    sign = "+" if x > 0 else ""
    return f"{sign}{x:.2f}%"


def format_value(x: float | None, decimals: int = 2, suffix: str = "") -> str:
    if x is None:
        return MISSING
    return f"{x:,.{decimals}f}{suffix}"


def _fmt_number(v: float) -> str:
    return str(int(v)) if v.is_integer() else repr(v)


def series_to_csv(series: Sequence[DailyRecord], value_column: str = "value") -> str:
    """Render a series as `date,<value_column>` CSV with DD-MM-YYYY dates."""
    lines = [f"date,{value_column}"]
    lines.extend(f"{format_ddmmyyyy(r.date)},{_fmt_number(r.value)}" for r in series)
    return "\n".join(lines) + "\n"


def sample_csv(value_column: str = "value") -> str:
    return "\n".join(
        [
            f"date,{value_column}",
            "18-12-2025,10",
            "19-12-2025,11",
            "20-12-2025,12",
        ]
    ) + "\n"
