"""Pydantic models for daily records and derived outputs.

All models are frozen: derived outputs are recomputed, never updated in
place. Optional fields use None for "no comparable data", never zero.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from daily_kpi.dates import MonthKey

CalcMode = Literal["sum", "avg"]
CALC_MODES: tuple[str, ...] = ("sum", "avg")


class DailyRecord(BaseModel):
    """One observation for one calendar day.

    Attributes:
        date: Calendar date (timezone-free).
        value: Finite numeric value; NaN and infinities are rejected.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    date: dt.date
    value: float = Field(..., allow_inf_nan=False)


class MonthlyRow(BaseModel):
    """Aggregated value for one month plus its growth against comparison months.

    Attributes:
        year: Calendar year of the month.
        month: Month number (1-12).
        value: Month total (sum mode) or mean of populated days (avg mode).
        max_day: Highest populated day-of-month (sum mode only).
        yoy_pct: Growth against the same month one year earlier.
        mom_pct: Growth against the previous month.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)
    year: int
    month: int = Field(..., ge=1, le=12)
    value: float
    max_day: int | None = Field(default=None, ge=1, le=31)
    yoy_pct: float | None = None
    mom_pct: float | None = None

    @property
    def key(self) -> MonthKey:
        return MonthKey(self.year, self.month)

    @property
    def label(self) -> str:
        return str(self.key)


class KPISnapshot(BaseModel):
    """Single-number rollups derived from the latest point of a daily series."""
    model_config = ConfigDict(extra="forbid", frozen=True)
    latest_date: dt.date | None = None
    latest_value: float | None = None
    latest_yoy: float | None = None
    avg7: float | None = None
    avg7_yoy: float | None = None
    avg30: float | None = None
    avg30_yoy: float | None = None
    fy_start: dt.date | None = None
    ytd_value: float | None = None
    ytd_yoy: float | None = None
    mtd_avg: float | None = None
    mtd_yoy: float | None = None

    @property
    def is_empty(self) -> bool:
        return all(v is None for v in self.model_dump().values())
