from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from daily_kpi.dates import MonthKey
from daily_kpi.models import DailyRecord, KPISnapshot, MonthlyRow


def test_daily_record_rejects_non_finite_values() -> None:
    DailyRecord(date=date(2025, 1, 1), value=1.5)
    with pytest.raises(ValidationError):
        DailyRecord(date=date(2025, 1, 1), value=float("nan"))
    with pytest.raises(ValidationError):
        DailyRecord(date=date(2025, 1, 1), value=float("inf"))


def test_models_are_frozen_and_strict() -> None:
    r = DailyRecord(date=date(2025, 1, 1), value=1)
    with pytest.raises(ValidationError):
        r.value = 2  # type: ignore[misc]
    with pytest.raises(ValidationError):
        DailyRecord.model_validate({"date": date(2025, 1, 1), "value": 1, "note": "x"})


def test_monthly_row_key_and_label() -> None:
    row = MonthlyRow(year=2025, month=3, value=10.0, max_day=12)
    assert row.key == MonthKey(2025, 3)
    assert row.label == "2025-03"
    assert row.yoy_pct is None and row.mom_pct is None


def test_kpi_snapshot_is_empty() -> None:
    assert KPISnapshot().is_empty
    assert not KPISnapshot(avg7=1.0).is_empty
