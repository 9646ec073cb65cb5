"""In-memory store of daily observations keyed by calendar date.

The store keeps a single date → value mapping. Mutations never modify the
current mapping: each one builds a new dict and swaps the reference, so a
reader holding the old mapping always sees a complete snapshot.

The flat key-value form (`{"YYYY-MM-DD": value}`) is what gets written to
JSON files and MongoDB.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Mapping

from daily_kpi.dates import format_iso, parse_iso_key
from daily_kpi.models import DailyRecord

log = logging.getLogger(__name__)

RecordLike = DailyRecord | tuple[date, float]


def _as_pair(r: RecordLike) -> tuple[date, float]:
    if isinstance(r, DailyRecord):
        return r.date, r.value
    d, v = r
    return d, float(v)


def _coerce_value(v: Any) -> float | None:
    """Return a finite float for numeric-looking input, else None."""
    if isinstance(v, bool) or v is None:
        return None
    try:
        n = float(v)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


class RecordStore:
    """Deduplicated (date, value) collection with last-write-wins semantics."""

    def __init__(self, data: Mapping[date, float] | None = None) -> None:
        self._data: dict[date, float] = dict(data or {})

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, d: object) -> bool:
        return d in self._data

    # -----------------------------
    # Mutations
    # -----------------------------
    def upsert(self, d: date, value: float) -> None:
        nxt = dict(self._data)
        nxt[d] = float(value)
        self._data = nxt

    def merge(self, records: Iterable[RecordLike]) -> int:
        """Upsert many records; later entries override earlier and stored ones.

        Args:
            records: `DailyRecord` objects or `(date, value)` pairs.

        Returns:
            Number of records applied.
        """
        nxt = dict(self._data)
        n = 0
        for r in records:
            d, v = _as_pair(r)
            nxt[d] = v
            n += 1
        self._data = nxt
        return n

    def clear(self) -> None:
        self._data = {}

    # -----------------------------
    # Reads
    # -----------------------------
    def lookup(self, d: date) -> float | None:
        return self._data.get(d)

    def sorted_series(self) -> list[DailyRecord]:
        """Return all records ascending by date (rebuilt on every call)."""
        data = self._data
        return [DailyRecord(date=d, value=data[d]) for d in sorted(data)]

    def window(self, start: date, end: date) -> list[DailyRecord]:
        """Return records with `start <= date <= end`, ascending."""
        data = self._data
        return [
            DailyRecord(date=d, value=data[d])
            for d in sorted(data)
            if start <= d <= end
        ]

    def latest(self) -> DailyRecord | None:
        if not self._data:
            return None
        d = max(self._data)
        return DailyRecord(date=d, value=self._data[d])

    # -----------------------------
    # Flat key-value representation
    # -----------------------------
    def to_flat_mapping(self) -> dict[str, float]:
        data = self._data
        return {format_iso(d): data[d] for d in sorted(data)}

    @classmethod
    def from_flat_mapping(cls, obj: Mapping[str, Any] | None) -> "RecordStore":
        """Build a store from `{"YYYY-MM-DD": value}`, dropping malformed entries."""
        data: dict[date, float] = {}
        dropped = 0
        for k, v in (obj or {}).items():
            d = parse_iso_key(k) if isinstance(k, str) else None
            n = _coerce_value(v)
            if d is None or n is None:
                dropped += 1
                continue
            data[d] = n
        if dropped:
            log.debug("Dropped %d malformed entries while loading series", dropped)
        return cls(data)

    def save_json(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_flat_mapping(), indent=2), encoding="utf-8")
        log.info("Saved %d records to %s", len(self), path)

    @classmethod
    def load_json(cls, path: Path) -> "RecordStore":
        """Load a store from a JSON file; a missing or unreadable file yields an empty store."""
        if not path.exists():
            return cls()
        try:
            obj = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            log.warning("Could not parse %s, starting empty: %s", path, e)
            return cls()
        if not isinstance(obj, dict):
            log.warning("Unexpected JSON payload in %s, starting empty", path)
            return cls()
        store = cls.from_flat_mapping(obj)
        log.info("Loaded %d records from %s", len(store), path)
        return store
