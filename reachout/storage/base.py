"""
Store interface for scan records.

Records are keyed by (company_name, location). What happens when a key is
already stored is decided by the store's MergePolicy:

- SKIP: leave the stored record alone
- MERGE: shallow-merge the new record's fields over the stored ones
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from reachout.models import MergePolicy, RunStats, ScanRecord, UpsertOutcome

logger = logging.getLogger(__name__)


def merge_documents(existing: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge: every field of the new document replaces the stored one."""
    merged = dict(existing)
    merged.update(new)
    return merged


class ScanStore(ABC):
    """Base class for scan record stores."""

    def __init__(self, merge_policy: MergePolicy = MergePolicy.SKIP):
        self.merge_policy = merge_policy

    # --- backend hooks ---

    @abstractmethod
    def _find(self, company_name: str, location: str) -> Optional[Dict[str, Any]]:
        """Stored document for the key, or None."""

    @abstractmethod
    def _insert(self, document: Dict[str, Any]) -> None:
        """Insert a document for a key that is not stored yet."""

    @abstractmethod
    def _replace(self, document: Dict[str, Any]) -> None:
        """Replace the stored document with the same key."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""

    @abstractmethod
    def all_records(self) -> List[ScanRecord]:
        """Every stored record."""

    def close(self) -> None:
        """Release backend resources."""

    def start_run(self, config_json: str = "") -> int:
        """Record the start of a run and return its ID (0 when runs are not tracked)."""
        return 0

    def finish_run(self, run_id: int, stats: RunStats) -> None:
        """Record the final statistics of a run."""

    # --- public API ---

    def get(self, company_name: str, location: str) -> Optional[ScanRecord]:
        doc = self._find(company_name, location)
        return ScanRecord.from_document(doc) if doc is not None else None

    def upsert(self, record: ScanRecord) -> UpsertOutcome:
        """
        Insert the record, or resolve the key collision per merge policy.

        Raises:
            PersistenceError: the backend failed
        """
        existing = self._find(record.company_name, record.location)
        document = record.to_document()

        if existing is None:
            self._insert(document)
            return UpsertOutcome.INSERTED

        if self.merge_policy is MergePolicy.SKIP:
            logger.info("Job already exists: %s (%s)", record.company_name, record.location)
            return UpsertOutcome.SKIPPED

        self._replace(merge_documents(existing, document))
        return UpsertOutcome.UPDATED

    def __enter__(self) -> "ScanStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()
