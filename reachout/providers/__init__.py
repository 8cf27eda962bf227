"""
External sources for ReachOut.

- Listing sources (paginated job search APIs)
- Website discovery (web search for a company's site)
"""

from reachout.providers.base import ListingSource
from reachout.providers.adzuna import AdzunaSource
from reachout.providers.discovery import (
    WebsiteDiscovery,
    company_query,
    parse_result_links,
)

__all__ = [
    "ListingSource",
    "AdzunaSource",
    "WebsiteDiscovery",
    "company_query",
    "parse_result_links",
]
