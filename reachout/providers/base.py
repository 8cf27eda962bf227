"""
Base interface for job listing sources.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, TYPE_CHECKING

from reachout.models import JobListing

if TYPE_CHECKING:
    from reachout.fetchers.http import HttpFetcher


@dataclass
class SourceStats:
    """Statistics for a listing source."""
    pages_fetched: int = 0
    collected: int = 0
    errors: int = 0
    error_messages: List[str] = field(default_factory=list)


class ListingSource(ABC):
    """
    Base class for paginated job listing sources.

    A source is responsible for:
    - Fetching one page of listings from its API
    - Converting raw items to JobListing objects
    """

    name: str = "base"

    def __init__(self):
        self.stats = SourceStats()

    @abstractmethod
    async def fetch_page(
        self,
        fetcher: "HttpFetcher",
        page: int,
    ) -> List[JobListing]:
        """
        Fetch one page of listings.

        Args:
            fetcher: HTTP fetcher for making requests
            page: 1-based page number

        Returns:
            List of JobListing objects (empty when the page has none)

        Raises:
            FetchError: the request failed; callers may retry
        """
        raise NotImplementedError

    def log_error(self, message: str) -> None:
        """Record an error for this source."""
        self.stats.errors += 1
        if len(self.stats.error_messages) < 10:
            self.stats.error_messages.append(message)
