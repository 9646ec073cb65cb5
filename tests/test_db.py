from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest
from pymongo.errors import PyMongoError

from daily_kpi.db import UpsertResult, bulk_upsert, load_store, save_store
from daily_kpi.store import RecordStore


def test_bulk_upsert_batches_and_skips_docs_without_key() -> None:
    collection = MagicMock()
    docs = [{"date": "2025-01-01"}, {"value": 1}, {"date": "2025-01-02"}, {"date": "2025-01-03"}]
    result = bulk_upsert(collection, docs, "date", batch_size=2)
    assert result == UpsertResult(attempted=3)
    assert result.ok
    assert collection.bulk_write.call_count == 2


def test_bulk_upsert_reports_failed_batches() -> None:
    collection = MagicMock()
    collection.bulk_write.side_effect = [None, PyMongoError("boom")]
    docs = [{"date": f"2025-01-0{d}"} for d in range(1, 6)]

    result = bulk_upsert(collection, docs, "date", batch_size=3)

    assert collection.bulk_write.call_count == 2
    assert result.attempted == 5
    assert result.failed_batches == 1
    assert result.failed_docs == 2
    assert not result.ok


def test_save_store_upserts_and_removes_stale_days() -> None:
    collection = MagicMock()
    store = RecordStore({date(2025, 1, 2): 2.0, date(2025, 1, 1): 1.0})

    assert save_store(collection, store) == 2
    ops = collection.bulk_write.call_args.args[0]
    assert len(ops) == 2
    collection.delete_many.assert_called_once_with({"date": {"$nin": ["2025-01-01", "2025-01-02"]}})


def test_save_store_raises_and_keeps_stale_days_after_failed_write() -> None:
    collection = MagicMock()
    collection.bulk_write.side_effect = PyMongoError("boom")
    store = RecordStore({date(2025, 1, 1): 1.0})

    with pytest.raises(RuntimeError, match="failed for 1 of 1 records"):
        save_store(collection, store)
    collection.delete_many.assert_not_called()


def test_load_store_drops_malformed_documents() -> None:
    collection = MagicMock()
    collection.find.return_value = [
        {"date": "2025-01-01", "value": 1.5},
        {"date": "2025-13-01", "value": 2},
        {"date": "2025-01-02", "value": "oops"},
        {"value": 3},
    ]
    store = load_store(collection)
    assert store.to_flat_mapping() == {"2025-01-01": 1.5}
