"""
MongoDB scan record storage.

One document per (companyName, location) in a single collection.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

from reachout.errors import PersistenceError
from reachout.models import MergePolicy, RunStats, ScanRecord, now_utc_iso
from reachout.storage.base import ScanStore

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "reach-out"
DEFAULT_COLLECTION = "jobs"


class MongoScanStore(ScanStore):
    """Scan record store backed by a MongoDB collection."""

    def __init__(
        self,
        uri: str = "",
        merge_policy: MergePolicy = MergePolicy.SKIP,
        database: Optional[str] = None,
        collection: Any = None,
        runs_collection: Any = None,
    ):
        super().__init__(merge_policy)
        self._client: Optional[MongoClient] = None

        if collection is None:
            try:
                self._client = MongoClient(uri, serverSelectionTimeoutMS=10000)
                db = self._client.get_default_database(default=database or DEFAULT_DATABASE)
            except PyMongoError as e:
                raise PersistenceError(f"Could not connect to MongoDB: {e}") from e
            collection = db[DEFAULT_COLLECTION]
            runs_collection = db["runs"]

        self.collection = collection
        self.runs = runs_collection

        try:
            self.collection.create_index(
                [("companyName", ASCENDING), ("location", ASCENDING)],
                unique=True,
            )
        except PyMongoError as e:
            # Existing duplicates block the unique index; uniqueness is still
            # enforced by upsert().
            logger.warning("Could not create unique index on jobs: %s", e)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _find(self, company_name: str, location: str) -> Optional[Dict[str, Any]]:
        try:
            doc = self.collection.find_one(
                {"companyName": company_name, "location": location},
                {"_id": 0},
            )
        except PyMongoError as e:
            raise PersistenceError(f"Lookup failed for {company_name!r}: {e}") from e
        return dict(doc) if doc is not None else None

    def _insert(self, document: Dict[str, Any]) -> None:
        try:
            self.collection.insert_one(dict(document))
        except PyMongoError as e:
            raise PersistenceError(f"Insert failed for {document.get('companyName')!r}: {e}") from e

    def _replace(self, document: Dict[str, Any]) -> None:
        try:
            self.collection.replace_one(
                {"companyName": document.get("companyName"), "location": document.get("location")},
                dict(document),
            )
        except PyMongoError as e:
            raise PersistenceError(f"Update failed for {document.get('companyName')!r}: {e}") from e

    def count(self) -> int:
        try:
            return self.collection.count_documents({})
        except PyMongoError as e:
            raise PersistenceError(f"Count failed: {e}") from e

    def all_records(self) -> List[ScanRecord]:
        try:
            docs = list(self.collection.find({}, {"_id": 0}))
        except PyMongoError as e:
            raise PersistenceError(f"Read failed: {e}") from e
        return [ScanRecord.from_document(doc) for doc in docs]

    def start_run(self, config_json: str = "") -> int:
        if self.runs is None:
            return 0
        try:
            run_id = self.runs.count_documents({}) + 1
            self.runs.insert_one({"run_id": run_id, "started_at": now_utc_iso(), "config": config_json})
        except PyMongoError as e:
            raise PersistenceError(f"Could not record run start: {e}") from e
        return run_id

    def finish_run(self, run_id: int, stats: RunStats) -> None:
        if self.runs is None or not run_id:
            return
        try:
            self.runs.update_one({"run_id": run_id}, {"$set": asdict(stats)})
        except PyMongoError as e:
            raise PersistenceError(f"Could not record run {run_id} stats: {e}") from e
