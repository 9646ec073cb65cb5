from __future__ import annotations

from datetime import date

from daily_kpi.export import format_ddmmyyyy, format_pct, format_value, sample_csv, series_to_csv
from daily_kpi.ingest.parse_csv import parse_csv_text
from daily_kpi.models import DailyRecord


def test_formatting_helpers() -> None:
    assert format_ddmmyyyy(date(2025, 4, 1)) == "01-04-2025"
    assert format_ddmmyyyy(None) == "—"
    assert format_pct(10) == "+10.00%"
    assert format_pct(-9.0909) == "-9.09%"
    assert format_pct(0.0) == "0.00%"
    assert format_pct(None) == "—"
    assert format_value(1234.5) == "1,234.50"
    assert format_value(3, decimals=0, suffix=" MU") == "3 MU"


def test_export_is_readable_by_the_importer() -> None:
    series = [
        DailyRecord(date=date(2025, 12, 18), value=10),
        DailyRecord(date=date(2025, 12, 19), value=2.5),
    ]
    text = series_to_csv(series, "units")
    assert text.splitlines() == ["date,units", "18-12-2025,10", "19-12-2025,2.5"]

    res = parse_csv_text(text)
    assert res.records == series
    assert res.errors == []


def test_sample_csv_parses_cleanly() -> None:
    res = parse_csv_text(sample_csv("units"))
    assert len(res.records) == 3
    assert res.errors == []
