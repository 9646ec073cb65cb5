"""Monthly aggregation with comparable-period growth.

Two modes are supported:

- ``sum``: the month value is the total of its days. Growth compares it with
  the comparison month summed only through the current month's highest
  populated day (`max_day`), so an in-progress month is measured against
  the same stretch of the previous month / year.
- ``avg``: the month value is the mean of its populated days. Growth
  compares full-month means directly, no truncation.

Expectations:
- Input: a list of `DailyRecord` ascending by date (`RecordStore.sorted_series`)
- Output: `MonthlyRow` objects ascending by month
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import pandas as pd

from daily_kpi.dates import MonthKey, add_months
from daily_kpi.growth import growth_pct, mean_or_none
from daily_kpi.models import CalcMode, DailyRecord, MonthlyRow


@dataclass(frozen=True)
class MonthAggregate:
    """Derived per-month totals for one month key.

    Attributes:
        total: Sum of all values in the month.
        count: Number of populated days.
        max_day: Highest populated day-of-month.
        by_day_sum: Day-of-month → summed value.
        by_day_count: Day-of-month → number of records.
    """
    total: float
    count: int
    max_day: int
    by_day_sum: dict[int, float] = field(default_factory=dict)
    by_day_count: dict[int, int] = field(default_factory=dict)


def series_frame(series: Sequence[DailyRecord]) -> pd.DataFrame:
    """Return records as a DataFrame with integer `year`, `month`, `day` and float `value`.

    Calendar parts are kept as integers so dates outside the datetime64[ns]
    range still bucket correctly.
    """
    return pd.DataFrame(
        {
            "year": pd.Series([r.date.year for r in series], dtype="int64"),
            "month": pd.Series([r.date.month for r in series], dtype="int64"),
            "day": pd.Series([r.date.day for r in series], dtype="int64"),
            "value": pd.Series([r.value for r in series], dtype="float64"),
        }
    )


def build_month_aggregates(series: Sequence[DailyRecord]) -> dict[MonthKey, MonthAggregate]:
    """Group daily records into per-month aggregates.

    Args:
        series: Daily records (any order).

    Returns:
        Mapping of month key to `MonthAggregate`, built fresh on every call.
    """
    pdf = series_frame(series)
    if pdf.empty:
        return {}

    by_month = (
        pdf.groupby(["year", "month"])
        .agg(total=("value", "sum"), days=("value", "size"), max_day=("day", "max"))
        .to_dict("index")
    )
    by_day = pdf.groupby(["year", "month", "day"])["value"].agg(["sum", "size"])

    day_sums: dict[MonthKey, dict[int, float]] = {}
    day_counts: dict[MonthKey, dict[int, int]] = {}
    for (y, m, d), row in by_day.iterrows():
        mk = MonthKey(int(y), int(m))
        day_sums.setdefault(mk, {})[int(d)] = float(row["sum"])
        day_counts.setdefault(mk, {})[int(d)] = int(row["size"])

    out: dict[MonthKey, MonthAggregate] = {}
    for (y, m), rec in by_month.items():
        mk = MonthKey(int(y), int(m))
        out[mk] = MonthAggregate(
            total=float(rec["total"]),
            count=int(rec["days"]),
            max_day=int(rec["max_day"]),
            by_day_sum=day_sums[mk],
            by_day_count=day_counts[mk],
        )
    return out


def sum_month_up_to_day(agg: MonthAggregate | None, day_limit: int) -> float | None:
    """Sum a month's values for days 1..`day_limit`.

    Returns:
        The truncated sum, or None when the month is missing or has no
        populated day within the limit.
    """
    if agg is None:
        return None
    days = [d for d in agg.by_day_sum if d <= day_limit]
    if not days:
        return None
    return sum(agg.by_day_sum[d] for d in days)


def avg_month_full(agg: MonthAggregate | None) -> float | None:
    if agg is None:
        return None
    return mean_or_none(agg.total, agg.count)


def _same_month_last_year(mk: MonthKey) -> MonthKey:
    return MonthKey(mk.year - 1, mk.month)


def monthly_sum_comparable(series: Sequence[DailyRecord]) -> list[MonthlyRow]:
    """Monthly totals with growth against truncated comparison months.

    Args:
        series: Daily records ascending by date.

    Returns:
        One `MonthlyRow` per populated month, ascending. `yoy_pct` and
        `mom_pct` are None when the comparison month has no populated day up
        to this month's `max_day`.
    """
    months = build_month_aggregates(series)
    rows: list[MonthlyRow] = []

    for mk in sorted(months):
        agg = months[mk]
        prev_mom = sum_month_up_to_day(months.get(add_months(mk, -1)), agg.max_day)
        prev_yoy = sum_month_up_to_day(months.get(_same_month_last_year(mk)), agg.max_day)
        rows.append(
            MonthlyRow(
                year=mk.year,
                month=mk.month,
                value=agg.total,
                max_day=agg.max_day,
                yoy_pct=growth_pct(agg.total, prev_yoy),
                mom_pct=growth_pct(agg.total, prev_mom),
            )
        )

    return rows


def monthly_avg_full(series: Sequence[DailyRecord]) -> list[MonthlyRow]:
    """Monthly means with growth against full comparison-month means."""
    months = build_month_aggregates(series)
    rows: list[MonthlyRow] = []

    for mk in sorted(months):
        curr = avg_month_full(months[mk])
        if curr is None:
            continue
        prev_mom = avg_month_full(months.get(add_months(mk, -1)))
        prev_yoy = avg_month_full(months.get(_same_month_last_year(mk)))
        rows.append(
            MonthlyRow(
                year=mk.year,
                month=mk.month,
                value=curr,
                yoy_pct=growth_pct(curr, prev_yoy),
                mom_pct=growth_pct(curr, prev_mom),
            )
        )

    return rows


def monthly_rows(series: Sequence[DailyRecord], mode: CalcMode) -> list[MonthlyRow]:
    """Dispatch to the aggregation matching `mode` ("sum" or "avg")."""
    if mode == "sum":
        return monthly_sum_comparable(series)
    if mode == "avg":
        return monthly_avg_full(series)
    raise ValueError(f"Unknown calc mode: {mode!r}")


# =========================================================
# DISPLAY HELPERS
# =========================================================

def tail_rows(rows: Sequence[MonthlyRow], n: int = 24) -> list[MonthlyRow]:
    """Keep the most recent `n` rows."""
    if n <= 0:
        return []
    return list(rows[-n:])


def rows_mean(rows: Sequence[MonthlyRow]) -> float | None:
    """Mean of the row values (reference line for a chart), None for no rows."""
    return mean_or_none(sum(r.value for r in rows), len(rows)) if rows else None


def rows_to_frame(rows: Sequence[MonthlyRow]) -> pd.DataFrame:
    """Return rows as a DataFrame with columns `month`, `value`, `max_day`,
    `yoy_pct`, `mom_pct`. Absent growth stays missing (object dtype, None)."""
    return pd.DataFrame(
        {
            "month": pd.Series([r.label for r in rows], dtype=object),
            "value": pd.Series([r.value for r in rows], dtype="float64"),
            "max_day": pd.Series([r.max_day for r in rows], dtype=object),
            "yoy_pct": pd.Series([r.yoy_pct for r in rows], dtype=object),
            "mom_pct": pd.Series([r.mom_pct for r in rows], dtype=object),
        }
    )
