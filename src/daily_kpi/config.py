"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads environment variables (and a project-level `.env`), including a check
that the calculation mode is one of the supported values.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

from daily_kpi.models import CALC_MODES, CalcMode

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")


@dataclass(frozen=True)
class Settings:
    """Container for configuration read from the environment.

    Attributes:
        store_path: JSON file holding the flat date → value mapping.
        calc_mode: "sum" for additive quantities, "avg" for rates.
        value_column: Header used for the value column in CSV exports.
        default_csv_url: Optional URL fetched by `daily-kpi fetch`.
        cache_dir: Local cache directory for downloaded CSVs.
        mongo_uri: Optional MongoDB URI for the `mongo` backend.
        mongo_db: MongoDB database name.
        mongo_collection: MongoDB collection holding the series.
        log_level: Logging level name.
    """
    store_path: Path
    calc_mode: CalcMode
    value_column: str
    default_csv_url: str | None
    cache_dir: Path
    mongo_uri: str | None
    mongo_db: str
    mongo_collection: str
    log_level: str


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `DAILY_KPI_CALC_MODE` is not "sum" or "avg".
    """
    calc_mode = os.getenv("DAILY_KPI_CALC_MODE", "sum").strip().lower()
    if calc_mode not in CALC_MODES:
        raise RuntimeError(
            f"DAILY_KPI_CALC_MODE must be one of {', '.join(CALC_MODES)} "
            f"(got {calc_mode!r})."
        )

    return Settings(
        store_path=Path(os.getenv("DAILY_KPI_STORE", "data/series.json")),
        calc_mode=calc_mode,  # type: ignore[arg-type]
        value_column=os.getenv("DAILY_KPI_VALUE_COLUMN", "units").strip() or "units",
        default_csv_url=os.getenv("DAILY_KPI_DEFAULT_CSV_URL", "").strip() or None,
        cache_dir=Path(os.getenv("DAILY_KPI_CACHE_DIR", "data/csv_cache")),
        mongo_uri=os.getenv("MONGO_URI", "").strip() or None,
        mongo_db=os.getenv("MONGO_DB", "daily_kpi"),
        mongo_collection=os.getenv("MONGO_COLLECTION", "daily_series"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
