"""KPI rollups derived from the latest point of a daily series.

Every window below is inclusive at both ends and averaged over the days that
actually have a value, not over the window length. Year-over-year windows
shift their endpoints with `add_years(·, -1)`; the fiscal year-to-date
window is instead anchored on the previous fiscal year's 1 April.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Sequence

import pandas as pd

from daily_kpi.dates import add_years, fiscal_year_start, month_start, subtract_days
from daily_kpi.growth import growth_pct, mean_or_none
from daily_kpi.models import CalcMode, DailyRecord, KPISnapshot

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowStats:
    """Sum and populated-day count over an inclusive date window.

    Attributes:
        start: First day of the window.
        end: Last day of the window.
        total: Sum of populated values, None when no day is populated.
        count: Number of populated days.
    """
    start: date
    end: date
    total: float | None
    count: int

    @property
    def mean(self) -> float | None:
        return mean_or_none(self.total, self.count)

    def value(self, mode: CalcMode) -> float | None:
        return self.total if mode == "sum" else self.mean


def values_series(series: Sequence[DailyRecord]) -> pd.Series:
    """Return values as a float Series indexed by `datetime.date`, ascending.

    The index holds plain date objects (object dtype) so the full
    `date.min`..`date.max` range is usable.
    """
    return pd.Series(
        [r.value for r in series],
        index=pd.Index([r.date for r in series], dtype=object),
        dtype="float64",
    ).sort_index()


def window_stats(values: pd.Series, start: date, end: date) -> WindowStats:
    """Sum the populated days of `[start, end]` from a date-indexed Series."""
    if values.empty or start > end:
        return WindowStats(start=start, end=end, total=None, count=0)
    in_window = values[(values.index >= start) & (values.index <= end)]
    count = int(in_window.size)
    total = float(in_window.sum()) if count else None
    return WindowStats(start=start, end=end, total=total, count=count)


def _shift_back_one_year(values: pd.Series, w: WindowStats) -> WindowStats:
    return window_stats(values, add_years(w.start, -1), add_years(w.end, -1))


def trailing_window(values: pd.Series, end: date, n_days: int) -> WindowStats:
    """Stats for the `n_days` calendar days ending at `end` inclusive."""
    return window_stats(values, subtract_days(end, n_days - 1), end)


def compute_kpis(series: Sequence[DailyRecord], mode: CalcMode = "sum") -> KPISnapshot:
    """Compute the KPI snapshot for a sorted daily series.

    Args:
        series: Daily records ascending by date.
        mode: "sum" or "avg"; only changes how year-to-date is rolled up.

    Returns:
        `KPISnapshot`; every field is None for an empty series, and any
        growth figure is None when its comparison window has no data.
    """
    if not series:
        return KPISnapshot()

    values = values_series(series)
    latest = series[-1]

    prev_year = add_years(latest.date, -1)
    prev_year_val = float(values[prev_year]) if prev_year in values.index else None

    last7 = trailing_window(values, latest.date, 7)
    py7 = _shift_back_one_year(values, last7)

    last30 = trailing_window(values, latest.date, 30)
    py30 = _shift_back_one_year(values, last30)

    fy_start = fiscal_year_start(latest.date)
    ytd = window_stats(values, fy_start, latest.date)
    ytd_py = window_stats(values, add_years(fy_start, -1), prev_year)

    mtd = window_stats(values, month_start(latest.date), latest.date)
    mtd_py = _shift_back_one_year(values, mtd)

    log.debug(
        "KPIs for %s: ytd=%s..%s (%d days), prior ytd=%s..%s (%d days)",
        latest.date, ytd.start, ytd.end, ytd.count, ytd_py.start, ytd_py.end, ytd_py.count,
    )

    return KPISnapshot(
        latest_date=latest.date,
        latest_value=latest.value,
        latest_yoy=growth_pct(latest.value, prev_year_val),
        avg7=last7.mean,
        avg7_yoy=growth_pct(last7.mean, py7.mean),
        avg30=last30.mean,
        avg30_yoy=growth_pct(last30.mean, py30.mean),
        fy_start=fy_start,
        ytd_value=ytd.value(mode),
        ytd_yoy=growth_pct(ytd.value(mode), ytd_py.value(mode)),
        mtd_avg=mtd.mean,
        mtd_yoy=growth_pct(mtd.mean, mtd_py.mean),
    )
