"""
ReachOut: job listing -> company website -> contact email aggregator.

Pages through a job search API, finds each employer's website and careers
page with a web search, scrapes them for contact emails, and stores one
record per (company, location).
"""

__version__ = "1.0.0"

from reachout.models import (
    CompanyDetails,
    JobListing,
    MergePolicy,
    RunStats,
    ScanConfig,
    ScanRecord,
    UpsertOutcome,
)
from reachout.orchestrator import run_aggregation, scan_listing

__all__ = [
    "CompanyDetails",
    "JobListing",
    "MergePolicy",
    "RunStats",
    "ScanConfig",
    "ScanRecord",
    "UpsertOutcome",
    "run_aggregation",
    "scan_listing",
]
