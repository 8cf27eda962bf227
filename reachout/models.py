"""
Core data models for ReachOut.

Provides:
- ScanConfig: run-time options for an aggregation run
- JobListing: a job as read from the listing source
- CompanyDetails: what a candidate website says about itself
- ScanRecord: the aggregated job + company + emails record that gets persisted
- RunStats: counters for a run
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# ----------------------------- Enums -----------------------------

class MergePolicy(str, Enum):
    """What the store does when a record with the same key already exists."""
    SKIP = "skip"
    MERGE = "merge"

    @classmethod
    def from_text(cls, text: str) -> "MergePolicy":
        t = (text or "").strip().lower()
        for policy in cls:
            if policy.value == t:
                return policy
        raise ValueError(f"Unknown merge policy: {text!r} (expected 'skip' or 'merge')")


class UpsertOutcome(str, Enum):
    """Result of a single upsert."""
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"


# ----------------------------- Utilities -----------------------------

def normalize_text(s: str) -> str:
    """Collapse whitespace and strip."""
    return re.sub(r"\s+", " ", (s or "")).strip()


def now_utc() -> datetime:
    """Current UTC datetime."""
    return datetime.now(timezone.utc)


def now_utc_iso() -> str:
    """Current UTC time as ISO string."""
    return now_utc().replace(microsecond=0).isoformat().replace("+00:00", "Z")


# ----------------------------- ScanConfig -----------------------------

@dataclass
class ScanConfig:
    """Run-time configuration for an aggregation run."""

    # Listing source
    start_page: int = 1
    max_pages: int = 1
    results_per_page: int = 20
    country: str = "gb"
    what: str = ""  # optional keyword filter passed to the listing API

    # Website discovery
    search_suffix: str = "company website"
    max_candidates: int = 5

    # Politeness
    min_interval_ms: int = 1000  # between rate-limited page fetches
    max_attempts: int = 3
    retry_base_delay_ms: int = 1000
    job_delay_s: float = 5.0  # pause between listings
    request_timeout_s: int = 15

    # Persistence
    merge_policy: MergePolicy = MergePolicy.SKIP

    @property
    def pages(self) -> range:
        return range(self.start_page, self.start_page + max(0, self.max_pages))


# ----------------------------- Records -----------------------------

@dataclass(frozen=True)
class JobListing:
    """A job listing as delivered by the listing source."""
    company_name: str
    job_description: str = ""
    location: str = ""
    listing_date: str = ""  # ISO timestamp string, as given by the API


@dataclass(frozen=True)
class CompanyDetails:
    """Display name and careers page found on a candidate website."""
    display_name: str
    careers_page: Optional[str] = None


@dataclass
class ScanRecord:
    """
    Aggregated result for one job listing.

    Built fresh per listing per run; not mutated after being handed to a store.
    """
    company_name: str
    job_description: str = ""
    location: str = ""
    listing_date: str = ""
    company_info: Optional[str] = None
    careers_page: Optional[str] = None
    emails: List[str] = field(default_factory=list)
    scanned_pages: List[str] = field(default_factory=list)

    @classmethod
    def for_listing(cls, listing: JobListing) -> "ScanRecord":
        return cls(
            company_name=listing.company_name,
            job_description=listing.job_description,
            location=listing.location,
            listing_date=listing.listing_date,
        )

    def to_document(self) -> Dict[str, Any]:
        """Persisted shape (camelCase keys, one document per record)."""
        return {
            "companyName": self.company_name,
            "companyInfo": self.company_info,
            "jobDescription": self.job_description,
            "location": self.location,
            "listingDate": self.listing_date,
            "careersPage": self.careers_page,
            "emails": list(self.emails),
            "scannedPages": list(self.scanned_pages),
        }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ScanRecord":
        return cls(
            company_name=doc.get("companyName") or "",
            job_description=doc.get("jobDescription") or "",
            location=doc.get("location") or "",
            listing_date=doc.get("listingDate") or "",
            company_info=doc.get("companyInfo"),
            careers_page=doc.get("careersPage"),
            emails=list(doc.get("emails") or []),
            scanned_pages=list(doc.get("scannedPages") or []),
        )


@dataclass
class RunStats:
    """Statistics for an aggregation run."""
    run_id: int
    started_at: str
    finished_at: Optional[str] = None
    pages_processed: int = 0
    jobs_processed: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    records_with_emails: int = 0
    persistence_errors: int = 0

    def count_outcome(self, outcome: UpsertOutcome) -> None:
        if outcome is UpsertOutcome.INSERTED:
            self.records_inserted += 1
        elif outcome is UpsertOutcome.UPDATED:
            self.records_updated += 1
        else:
            self.records_skipped += 1
