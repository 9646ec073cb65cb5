"""Command-line interface for managing the series and querying analytics.

Provides subcommands: `import`, `fetch`, `add`, `clear`, `kpis`, `monthly`,
`export`, and `sample`. Each command is implemented as a `cmd_*` function
that accepts an argparse namespace.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Sequence

from dotenv import load_dotenv

from daily_kpi.config import Settings, get_settings
from daily_kpi.logging_config import configure_logging
from daily_kpi.db import get_client, get_db, load_store, save_store
from daily_kpi.store import RecordStore
from daily_kpi.models import CALC_MODES, CalcMode, DailyRecord

# INGEST
from daily_kpi.ingest.fetch_csv import download_csv
from daily_kpi.ingest.parse_csv import (
    frame_to_records,
    parse_csv_file,
    parse_input_date,
    parse_many_csv,
    parse_value,
)

# ANALYTICS
from daily_kpi.aggregate.kpis import compute_kpis
from daily_kpi.aggregate.monthly import monthly_rows, rows_mean, rows_to_frame, tail_rows
from daily_kpi.export import format_ddmmyyyy, format_pct, format_value, sample_csv, series_to_csv

log = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 12


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _mongo_collection(s: Settings) -> Any:
    if not s.mongo_uri:
        raise RuntimeError("MONGO_URI is required for the mongo backend. Set it in .env.")
    client = get_client(s.mongo_uri)
    return get_db(client, s.mongo_db)[s.mongo_collection]


def _load_store(args: argparse.Namespace, s: Settings) -> RecordStore:
    if args.backend == "mongo":
        return load_store(_mongo_collection(s))
    return RecordStore.load_json(s.store_path)


def _save_store(args: argparse.Namespace, s: Settings, store: RecordStore) -> None:
    if args.backend == "mongo":
        save_store(_mongo_collection(s), store)
    else:
        store.save_json(s.store_path)


def _mode(args: argparse.Namespace, s: Settings) -> CalcMode:
    return args.mode or s.calc_mode


def _report_errors(errors: list[str]) -> None:
    for e in errors[:MAX_REPORTED_ERRORS]:
        log.warning(e)
    if len(errors) > MAX_REPORTED_ERRORS:
        log.warning("... %d more issues", len(errors) - MAX_REPORTED_ERRORS)


def _apply(args: argparse.Namespace, s: Settings, records: list[DailyRecord], replace: bool = False) -> int:
    if not records:
        raise RuntimeError("No valid rows found in CSV.")
    store = _load_store(args, s)
    if replace:
        store.clear()
    n = store.merge(records)
    _save_store(args, s, store)
    return n


# --------------------------------------------------
# INGEST
# --------------------------------------------------
def cmd_import(args: argparse.Namespace) -> None:
    """Merge one or more CSV files into the store (later files win on duplicate dates).

    Args:
        args: argparse namespace with `paths`.
    """
    s = get_settings()
    ddf, errors = parse_many_csv([Path(p) for p in args.paths])
    records = frame_to_records(ddf.compute())
    _report_errors(errors)

    n = _apply(args, s, records)
    log.info(
        "Imported %d rows%s.",
        n,
        f" (with {len(errors)} issues)" if errors else "",
    )


def cmd_fetch(args: argparse.Namespace) -> None:
    """Download a CSV (URL argument or DAILY_KPI_DEFAULT_CSV_URL) and load it."""
    s = get_settings()
    url = args.url or s.default_csv_url
    if not url:
        raise RuntimeError("No URL given and DAILY_KPI_DEFAULT_CSV_URL is not set.")

    path = download_csv(url, s.cache_dir, force=args.force)
    pdf, errors = parse_csv_file(path)
    _report_errors(errors)

    n = _apply(args, s, frame_to_records(pdf), replace=args.replace)
    log.info("Loaded (%d rows)%s.", n, f" with {len(errors)} issues" if errors else "")


def cmd_add(args: argparse.Namespace) -> None:
    """Insert or overwrite a single day."""
    s = get_settings()
    d = parse_input_date(args.date)
    if d is None:
        raise RuntimeError("Please enter a valid date (DD-MM-YYYY).")
    v = parse_value(args.value)
    if v is None:
        raise RuntimeError("Please enter a valid number.")

    store = _load_store(args, s)
    store.upsert(d, v)
    _save_store(args, s, store)
    log.info("Saved %s: %s", format_ddmmyyyy(d), format_value(v))


def cmd_clear(args: argparse.Namespace) -> None:
    s = get_settings()
    store = _load_store(args, s)
    store.clear()
    _save_store(args, s, store)
    log.info("Cleared all data.")


# --------------------------------------------------
# ANALYTICS
# --------------------------------------------------
def cmd_kpis(args: argparse.Namespace) -> None:
    """Print the KPI snapshot for the stored series."""
    s = get_settings()
    mode = _mode(args, s)
    k = compute_kpis(_load_store(args, s).sorted_series(), mode)

    if k.is_empty:
        print("No data. Add datapoints or import a CSV.")
        return

    ytd_label = "YTD Avg (from 1 Apr)" if mode == "avg" else "YTD Total (from 1 Apr)"
    lines = [
        ("Latest day", f"{format_ddmmyyyy(k.latest_date)}  {format_value(k.latest_value)}"),
        ("Latest YoY (same day)", format_pct(k.latest_yoy)),
        ("Current 7-Day Average", f"{format_value(k.avg7)}  {format_pct(k.avg7_yoy)} YoY"),
        ("Current 30-Day Average", f"{format_value(k.avg30)}  {format_pct(k.avg30_yoy)} YoY"),
        (ytd_label, f"{format_value(k.ytd_value)}  {format_pct(k.ytd_yoy)} YoY"),
        ("MTD Average", f"{format_value(k.mtd_avg)}  {format_pct(k.mtd_yoy)} YoY"),
    ]
    width = max(len(label) for label, _ in lines)
    for label, value in lines:
        print(f"{label:<{width}}  {value}")


def cmd_monthly(args: argparse.Namespace) -> None:
    """Print the most recent monthly rows with MoM/YoY growth."""
    s = get_settings()
    mode = _mode(args, s)
    rows = tail_rows(monthly_rows(_load_store(args, s).sorted_series(), mode), args.last)

    if not rows:
        print("No data. Add data to see monthly metrics.")
        return

    df = rows_to_frame(rows)
    df["value"] = df["value"].map(format_value)
    df["yoy_pct"] = df["yoy_pct"].map(format_pct)
    df["mom_pct"] = df["mom_pct"].map(format_pct)
    if mode == "avg":
        df = df.drop(columns=["max_day"])
    print(df.to_string(index=False))
    print(f"\nMean of shown months: {format_value(rows_mean(rows))}")


def cmd_export(args: argparse.Namespace) -> None:
    s = get_settings()
    series = _load_store(args, s).sorted_series()
    out = Path(args.path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(series_to_csv(series, s.value_column), encoding="utf-8")
    log.info("Exported %d rows to %s", len(series), out)


def cmd_sample(_: argparse.Namespace) -> None:
    print(sample_csv(get_settings().value_column), end="")


COMMANDS = {
    "import": cmd_import,
    "fetch": cmd_fetch,
    "add": cmd_add,
    "clear": cmd_clear,
    "kpis": cmd_kpis,
    "monthly": cmd_monthly,
    "export": cmd_export,
    "sample": cmd_sample,
}


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="daily-kpi")
    p.add_argument("--backend", choices=["json", "mongo"], default="json")
    p.add_argument("--mode", choices=list(CALC_MODES), default=None)
    sub = p.add_subparsers(dest="cmd", required=True)

    p_import = sub.add_parser("import")
    p_import.add_argument("paths", nargs="+")

    p_fetch = sub.add_parser("fetch")
    p_fetch.add_argument("url", nargs="?", default=None)
    p_fetch.add_argument("--force", action="store_true")
    p_fetch.add_argument("--replace", action="store_true")

    p_add = sub.add_parser("add")
    p_add.add_argument("date")
    p_add.add_argument("value")

    sub.add_parser("clear")
    sub.add_parser("kpis")

    p_monthly = sub.add_parser("monthly")
    p_monthly.add_argument("--last", type=int, default=24)

    p_export = sub.add_parser("export")
    p_export.add_argument("path")

    sub.add_parser("sample")

    return p


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        configure_logging(Path("logs/daily_kpi.log"), get_settings().log_level)
        COMMANDS[args.cmd](args)
    except (RuntimeError, OSError) as e:
        log.error("%s failed: %s", args.cmd, e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
