"""Parsing helpers for two-column daily CSV files.

`parse_csv_text` converts CSV text into `DailyRecord` objects plus one
diagnostic per malformed row, while `parse_many_csv` stacks several files
into a Dask DataFrame whose `source`/`row` columns preserve input order, so
merging it into a store keeps last-write-wins across files.
"""

from __future__ import annotations

import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, cast

import dask.dataframe as dd
import pandas as pd

from daily_kpi.dates import parse_iso_key
from daily_kpi.models import DailyRecord

log = logging.getLogger(__name__)

DMY_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")

FRAME_COLUMNS = ["date", "value"]


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one CSV payload.

    Attributes:
        records: Valid records in input order (duplicates kept; the store
            resolves them with last-write-wins).
        errors: Human-readable diagnostics, one per rejected row.
    """
    records: list[DailyRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def parse_input_date(s: Any) -> date | None:
    """Parse `DD-MM-YYYY` or `YYYY-MM-DD`; None when malformed or not a real date."""
    if not isinstance(s, str):
        return None
    t = s.strip()

    m = DMY_RE.match(t)
    if m:
        try:
            return date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
        except ValueError:
            return None

    return parse_iso_key(t)


def parse_value(s: Any) -> float | None:
    """Parse a numeric cell, stripping thousands separators; None unless finite."""
    t = str(s).replace(",", "").strip()
    # float() would accept "1_000"
    if not t or "_" in t:
        return None
    try:
        v = float(t)
    except ValueError:
        return None
    return v if math.isfinite(v) else None


def _rows(text: str) -> list[list[str]]:
    rows: list[list[str]] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        cols = [c.strip() for c in next(csv.reader([line]))]
        if len(cols) >= 2:
            rows.append(cols)

    # Optional header
    if rows and "date" in rows[0][0].lower():
        rows.pop(0)
    return rows


def parse_csv_text(text: str) -> ParseResult:
    """Parse `date,value` CSV text.

    Blank lines and rows with fewer than two cells are ignored; a first row
    whose first cell mentions "date" is treated as a header. Bad rows are
    reported and skipped, the rest of the batch is still returned.

    Args:
        text: Raw CSV text.

    Returns:
        `ParseResult` with the valid records and per-row diagnostics.
    """
    records: list[DailyRecord] = []
    errors: list[str] = []

    for i, (d_raw, v_raw, *_) in enumerate(_rows(text), start=1):
        d = parse_input_date(d_raw)
        if d is None:
            errors.append(f"Row {i}: invalid date '{d_raw}' (expected DD-MM-YYYY)")
            continue
        v = parse_value(v_raw)
        if v is None:
            errors.append(f"Row {i}: invalid value '{v_raw}'")
            continue
        records.append(DailyRecord(date=d, value=v))

    return ParseResult(records=records, errors=errors)


def records_to_frame(records: list[DailyRecord]) -> pd.DataFrame:
    """Return records as a DataFrame with `date` (datetime64) and `value` (float)."""
    return pd.DataFrame(
        {
            "date": pd.to_datetime(pd.Series([r.date for r in records], dtype=object)),
            "value": pd.Series([r.value for r in records], dtype="float64"),
        },
        columns=FRAME_COLUMNS,
    )


def parse_csv_file(path: Path) -> tuple[pd.DataFrame, list[str]]:
    """Parse a CSV file into a pandas DataFrame.

    Args:
        path: Path to a UTF-8 CSV file.

    Returns:
        Tuple of (DataFrame with `date`, `value` columns, diagnostics).

    Raises:
        FileNotFoundError: if `path` does not exist.
    """
    text = path.read_text(encoding="utf-8-sig")
    res = parse_csv_text(text)
    if res.errors:
        log.warning("%s: %d malformed rows skipped", path, len(res.errors))
    log.info("Parsed %d rows from %s", len(res.records), path)
    return records_to_frame(res.records), res.errors


def parse_many_csv(paths: list[Path]) -> tuple[Any, list[str]]:
    """Parse several CSV files into one Dask DataFrame.

    Each file becomes its own partition(s); `source` is the file position in
    `paths` and `row` the record position inside the file.

    Args:
        paths: CSV files, in the order their values should be applied.

    Returns:
        Tuple of (Dask DataFrame with `date`, `value`, `source`, `row`,
        all diagnostics prefixed with the file name).
    """
    dd_mod = cast(Any, dd)
    parts: list[Any] = []
    errors: list[str] = []

    for i, p in enumerate(paths):
        pdf, errs = parse_csv_file(p)
        pdf = pdf.assign(source=i, row=range(len(pdf)))
        parts.append(dd_mod.from_pandas(pdf, npartitions=1))
        errors.extend(f"{p.name}: {e}" for e in errs)

    if not parts:
        empty = records_to_frame([]).assign(source=pd.Series(dtype="int64"), row=pd.Series(dtype="int64"))
        return dd_mod.from_pandas(empty, npartitions=1), errors

    return dd_mod.concat(parts), errors


def frame_to_records(pdf: pd.DataFrame) -> list[DailyRecord]:
    """Convert a parsed frame back into records, honoring `source`/`row` order when present."""
    if pdf.empty:
        return []
    if {"source", "row"}.issubset(pdf.columns):
        pdf = pdf.sort_values(["source", "row"], kind="stable")
    dates = pd.to_datetime(pdf["date"]).dt.date
    return [DailyRecord(date=d, value=float(v)) for d, v in zip(dates, pdf["value"])]
