from __future__ import annotations

from datetime import date

from daily_kpi.models import DailyRecord
from daily_kpi.store import RecordStore


def test_upsert_is_last_write_wins_and_sorted() -> None:
    store = RecordStore()
    store.upsert(date(2025, 1, 3), 3)
    store.upsert(date(2025, 1, 1), 1)
    store.upsert(date(2025, 1, 3), 30)

    series = store.sorted_series()
    assert [r.date for r in series] == [date(2025, 1, 1), date(2025, 1, 3)]
    assert series[-1].value == 30.0
    assert len(store) == 2


def test_merge_overrides_earlier_and_stored_values() -> None:
    store = RecordStore({date(2025, 1, 1): 1.0})
    n = store.merge(
        [
            DailyRecord(date=date(2025, 1, 1), value=5),
            (date(2025, 1, 2), 2),
            (date(2025, 1, 2), 7),
        ]
    )
    assert n == 3
    assert store.lookup(date(2025, 1, 1)) == 5.0
    assert store.lookup(date(2025, 1, 2)) == 7.0
    assert store.lookup(date(2025, 1, 9)) is None


def test_mutations_replace_the_mapping() -> None:
    store = RecordStore({date(2025, 1, 1): 1.0})
    before = store._data
    store.upsert(date(2025, 1, 2), 2)
    assert store._data is not before
    assert date(2025, 1, 2) not in before


def test_window_latest_and_clear() -> None:
    store = RecordStore({date(2025, 1, d): float(d) for d in (1, 5, 9, 12)})
    assert [r.value for r in store.window(date(2025, 1, 5), date(2025, 1, 9))] == [5.0, 9.0]
    assert store.latest() == DailyRecord(date=date(2025, 1, 12), value=12)

    store.clear()
    assert store.sorted_series() == []
    assert store.latest() is None


def test_flat_mapping_drops_malformed_entries() -> None:
    store = RecordStore.from_flat_mapping(
        {
            "2025-01-01": 1,
            "2025-02-30": 2,
            "bad": 3,
            "2025-01-02": "nan",
            "2025-01-03": "4.5",
            "2025-01-04": None,
            "2025-01-05": True,
        }
    )
    assert store.to_flat_mapping() == {"2025-01-01": 1.0, "2025-01-03": 4.5}


def test_json_round_trip(tmp_path) -> None:
    path = tmp_path / "nested" / "series.json"
    store = RecordStore({date(2024, 2, 29): 1.25, date(2023, 12, 31): -3.0})
    store.save_json(path)

    loaded = RecordStore.load_json(path)
    assert loaded.sorted_series() == store.sorted_series()


def test_load_json_missing_or_corrupt_file_is_empty(tmp_path) -> None:
    assert len(RecordStore.load_json(tmp_path / "missing.json")) == 0

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert len(RecordStore.load_json(bad)) == 0
