"""
Adzuna jobs API listing source.

Requires REACHOUT_ADZUNA_APP_ID and REACHOUT_ADZUNA_APP_KEY (or explicit arguments).
"""

from __future__ import annotations

import logging
import os
import urllib.parse
from typing import Any, List, Optional, TYPE_CHECKING

from reachout.errors import ConfigError
from reachout.models import JobListing, normalize_text
from reachout.providers.base import ListingSource

if TYPE_CHECKING:
    from reachout.fetchers.http import HttpFetcher

logger = logging.getLogger(__name__)

ADZUNA_API_ROOT = "https://api.adzuna.com/v1/api/jobs"


def _get_path(item: Any, *path: str) -> Any:
    value = item
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def parse_listing(item: Any) -> Optional[JobListing]:
    """Convert one raw Adzuna result into a JobListing."""
    if not isinstance(item, dict):
        return None
    company = _as_text(_get_path(item, "company", "display_name"))
    return JobListing(
        company_name=normalize_text(company),
        job_description=_as_text(item.get("description")),
        location=_as_text(_get_path(item, "location", "display_name")),
        listing_date=_as_text(item.get("created")),
    )


class AdzunaSource(ListingSource):
    """Listing source backed by the Adzuna search API."""

    name = "adzuna"

    def __init__(
        self,
        app_id: Optional[str] = None,
        app_key: Optional[str] = None,
        country: str = "gb",
        results_per_page: int = 20,
        what: str = "",
        api_root: str = ADZUNA_API_ROOT,
    ):
        super().__init__()
        self.app_id = (app_id or os.environ.get("REACHOUT_ADZUNA_APP_ID", "")).strip()
        self.app_key = (app_key or os.environ.get("REACHOUT_ADZUNA_APP_KEY", "")).strip()
        if not self.app_id or not self.app_key:
            raise ConfigError("REACHOUT_ADZUNA_APP_ID / REACHOUT_ADZUNA_APP_KEY not set")
        self.country = (country or "gb").strip().lower()
        self.results_per_page = max(1, min(results_per_page, 50))
        self.what = what
        self.api_root = api_root.rstrip("/")

    def page_url(self, page: int) -> str:
        params = {
            "app_id": self.app_id,
            "app_key": self.app_key,
            "results_per_page": self.results_per_page,
            "content-type": "application/json",
        }
        if self.what:
            params["what"] = self.what
        return f"{self.api_root}/{self.country}/search/{page}?{urllib.parse.urlencode(params)}"

    async def fetch_page(
        self,
        fetcher: "HttpFetcher",
        page: int,
    ) -> List[JobListing]:
        data = await fetcher.fetch_json(self.page_url(page))
        self.stats.pages_fetched += 1

        raw_items = data.get("results") if isinstance(data, dict) else None
        if not isinstance(raw_items, list):
            self.log_error(f"Unexpected response format on page {page}")
            return []

        listings: List[JobListing] = []
        for item in raw_items:
            listing = parse_listing(item)
            if listing is None:
                self.log_error(f"Skipping malformed item on page {page}")
                continue
            listings.append(listing)

        self.stats.collected += len(listings)
        logger.info("Adzuna page %d: %d listings", page, len(listings))
        return listings
