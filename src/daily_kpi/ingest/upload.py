"""Merge interactive CSV uploads into a store exactly once.

An upload widget hands back the same file on every rerun of the dashboard
script. Each upload id is merged a single time, so later manual edits to
the same days are not overwritten by the still-attached file.
"""

from __future__ import annotations

import logging
from typing import MutableSet

from daily_kpi.ingest.parse_csv import ParseResult, parse_csv_text
from daily_kpi.store import RecordStore

log = logging.getLogger(__name__)


def merge_upload_once(
    store: RecordStore,
    text: str,
    upload_id: str,
    merged_ids: MutableSet[str],
) -> ParseResult | None:
    """Parse `text` and merge its valid rows unless `upload_id` was merged before.

    Args:
        store: Store receiving the records.
        text: Decoded CSV payload.
        upload_id: Stable id of the uploaded file.
        merged_ids: Ids already merged; `upload_id` is added to it.

    Returns:
        The parse result, or None when this upload was already merged.
    """
    if upload_id in merged_ids:
        return None

    res = parse_csv_text(text)
    if res.records:
        store.merge(res.records)
    merged_ids.add(upload_id)
    log.info("Upload %s: merged %d rows, %d rejected", upload_id, len(res.records), len(res.errors))
    return res
