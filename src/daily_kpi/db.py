"""MongoDB persistence for the daily series.

Documents are stored one per day as `{"date": "YYYY-MM-DD", "value": v}`,
which is the store's flat key-value form. Saving replaces the whole
collection content: days missing from the store are deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

import certifi
from pymongo import MongoClient, UpdateOne
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from daily_kpi.store import RecordStore

log = logging.getLogger(__name__)

KEY_FIELD = "date"


def get_client(uri: str) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    TLS (with the certifi CA bundle) is enabled for `mongodb+srv://` URIs
    and for URIs that ask for it with `tls=true`.

    Args:
        uri: MongoDB connection URI.

    Returns:
        Configured MongoClient instance.
    """
    tls = uri.startswith("mongodb+srv://") or "tls=true" in uri.lower()
    if not tls:
        return MongoClient(uri, serverSelectionTimeoutMS=30000)
    return MongoClient(
        uri,
        tls=True,
        tlsCAFile=certifi.where(),
        serverSelectionTimeoutMS=30000,
        socketTimeoutMS=30000,
        connectTimeoutMS=30000,
    )


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    return client[db_name]


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of a `bulk_upsert` call.

    Attributes:
        attempted: Documents sent to the server.
        failed_batches: Number of `bulk_write` calls that raised.
        failed_docs: Documents in those failed batches.
    """
    attempted: int = 0
    failed_batches: int = 0
    failed_docs: int = 0

    @property
    def ok(self) -> bool:
        return self.failed_batches == 0


def bulk_upsert(
    collection: Collection[dict[str, Any]],
    docs: Iterable[dict[str, Any]],
    key_field: str,
    batch_size: int = 1000,
) -> UpsertResult:
    """Upsert documents keyed on `key_field`, `batch_size` operations per write.

    Documents without `key_field` are skipped. A batch that raises is logged
    and counted in the result; the remaining batches are still written.
    """
    attempted = 0
    failed_batches = 0
    failed_docs = 0
    batch: list[UpdateOne] = []

    def flush() -> None:
        nonlocal failed_batches, failed_docs
        try:
            collection.bulk_write(batch, ordered=False)
        except PyMongoError as e:
            failed_batches += 1
            failed_docs += len(batch)
            log.error("Upsert of %d documents into %s failed: %s", len(batch), collection.name, e)

    for doc in docs:
        if key_field not in doc:
            continue
        batch.append(UpdateOne({key_field: doc[key_field]}, {"$set": doc}, upsert=True))
        attempted += 1
        if len(batch) >= batch_size:
            flush()
            batch = []

    if batch:
        flush()

    return UpsertResult(attempted=attempted, failed_batches=failed_batches, failed_docs=failed_docs)


def save_store(collection: Collection[dict[str, Any]], store: RecordStore) -> int:
    """Replace the collection content with the store's records.

    Args:
        collection: Target collection.
        store: Store to persist.

    Returns:
        Number of documents upserted.

    Raises:
        RuntimeError: If any upsert batch failed. Stale days are then left
            in place so nothing is deleted after a partial write.
    """
    flat = store.to_flat_mapping()
    result = bulk_upsert(
        collection,
        ({KEY_FIELD: k, "value": v} for k, v in flat.items()),
        KEY_FIELD,
    )
    if not result.ok:
        raise RuntimeError(
            f"Saving to {collection.name} failed for {result.failed_docs} of "
            f"{result.attempted} records ({result.failed_batches} batches)"
        )

    deleted = collection.delete_many({KEY_FIELD: {"$nin": list(flat)}})
    log.info(
        "Saved %d records to %s (%d stale removed)",
        result.attempted,
        collection.name,
        getattr(deleted, "deleted_count", 0),
    )
    return result.attempted


def load_store(collection: Collection[dict[str, Any]]) -> RecordStore:
    """Load the series from a collection, dropping malformed documents."""
    flat: dict[str, Any] = {}
    for doc in collection.find({}, {"_id": False, KEY_FIELD: True, "value": True}):
        k = doc.get(KEY_FIELD)
        if isinstance(k, str):
            flat[k] = doc.get("value")
    store = RecordStore.from_flat_mapping(flat)
    log.info("Loaded %d records from %s", len(store), collection.name)
    return store
