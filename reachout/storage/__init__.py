"""
Storage layer for ReachOut.

Provides scan record persistence keyed by (company, location) with:
- SQLite storage (default), run tracking and CSV export
- MongoDB storage
- open_store() to pick a backend from a connection string
"""

from __future__ import annotations

from reachout.models import MergePolicy
from reachout.storage.base import ScanStore, merge_documents
from reachout.storage.sqlite import ScanDatabase

SQLITE_PREFIX = "sqlite:///"
MONGO_SCHEMES = ("mongodb://", "mongodb+srv://")


def open_store(url: str, merge_policy: MergePolicy = MergePolicy.SKIP) -> ScanStore:
    """
    Open a store from a connection string.

    - mongodb:// or mongodb+srv:// -> MongoScanStore
    - sqlite:///path/to.db or a plain file path -> ScanDatabase
    """
    url = (url or "").strip()
    if url.startswith(MONGO_SCHEMES):
        from reachout.storage.mongo import MongoScanStore
        return MongoScanStore(url, merge_policy=merge_policy)
    if url.startswith(SQLITE_PREFIX):
        url = url[len(SQLITE_PREFIX):]
    return ScanDatabase(url or "reachout.db", merge_policy=merge_policy)


__all__ = ["ScanStore", "ScanDatabase", "merge_documents", "open_store"]
