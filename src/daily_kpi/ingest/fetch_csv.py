"""Download a default daily CSV and keep a local copy.

The cached file name is derived from the URL so different sources do not
overwrite each other.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

log = logging.getLogger(__name__)


def cache_path_for(url: str, out_dir: Path) -> Path:
    """Return the cache file path used for `url`.

    Args:
        url: Source URL.
        out_dir: Cache directory.

    Returns:
        `out_dir / "<name>_<hash>.csv"` where name is the URL's last path
        segment without extension.
    """
    stem = url.rstrip("/").rsplit("/", 1)[-1].split("?", 1)[0].rsplit(".", 1)[0] or "series"
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:10]
    return out_dir / f"{stem}_{digest}.csv"


def download_csv(url: str, out_dir: Path, force: bool = False, timeout: float = 60.0) -> Path:
    """Download or return cached CSV for a URL.

    Args:
        url: HTTP(S) URL of a `date,value` CSV.
        out_dir: Local directory to cache downloaded files.
        force: Re-download even when a non-empty cached copy exists.
        timeout: Request timeout in seconds.

    Returns:
        Path to the downloaded (or cached) CSV file.

    Raises:
        requests.HTTPError if the remote request fails (non-2xx status).
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = cache_path_for(url, out_dir)

    if not force and out_path.exists() and out_path.stat().st_size > 0:
        log.info("Cache hit: %s", out_path)
        return out_path

    log.info("Downloading %s", url)
    import requests  # type: ignore[import-untyped]  # local import to avoid requiring type stubs at module import
    r = requests.get(url, headers={"Cache-Control": "no-cache"}, timeout=timeout)
    r.raise_for_status()
    out_path.write_bytes(r.content)
    log.info("Saved: %s (%d bytes)", out_path, out_path.stat().st_size)
    return out_path
