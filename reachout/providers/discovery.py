"""
Website discovery: find candidate company websites with a web search.

Scrapes DuckDuckGo's HTML results page and returns the result links in the
order they are presented.
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Awaitable, Callable, List

from bs4 import BeautifulSoup

from reachout.errors import FetchError
from reachout.models import normalize_text

logger = logging.getLogger(__name__)

DDG_HTML_URL = "https://duckduckgo.com/html"

# Anchor marking an organic result on the HTML results page
RESULT_LINK_SELECTOR = "a.result__a"


def company_query(company_name: str, suffix: str = "company website") -> str:
    """Search query used to look up a company's website."""
    return normalize_text(f"{company_name} {suffix}")


def unwrap_result_link(href: str) -> str:
    """
    Return the target of a DuckDuckGo redirect link (//duckduckgo.com/l/?uddg=...).

    Other links are returned unchanged.
    """
    href = (href or "").strip()
    parsed = urllib.parse.urlsplit(href)
    if parsed.netloc.endswith("duckduckgo.com") and parsed.path.startswith("/l/"):
        target = urllib.parse.parse_qs(parsed.query).get("uddg")
        if target:
            return target[0]
    return href


def is_absolute_url(url: str) -> bool:
    return urllib.parse.urlsplit(url).scheme in ("http", "https")


def parse_result_links(html: str, max_results: int = 5) -> List[str]:
    """Absolute result URLs from a results page, in order, capped at max_results."""
    if not html or max_results <= 0:
        return []

    soup = BeautifulSoup(html, "lxml")
    results: List[str] = []

    for a in soup.select(RESULT_LINK_SELECTOR):
        if len(results) >= max_results:
            break
        link = unwrap_result_link(a.get("href", ""))
        if link and is_absolute_url(link):
            results.append(link)

    return results


class WebsiteDiscovery:
    """Looks up candidate websites for a free-text query."""

    def __init__(
        self,
        fetch_page: Callable[[str], Awaitable[str]],
        search_url: str = DDG_HTML_URL,
    ):
        self.fetch_page = fetch_page
        self.search_url = search_url

    def build_search_url(self, query: str) -> str:
        return f"{self.search_url}?q={urllib.parse.quote(query, safe='')}"

    async def search(self, query: str, max_results: int = 5) -> List[str]:
        """
        Search and return up to max_results candidate URLs.

        An empty list means nothing was found or the provider was unreachable.
        """
        try:
            html = await self.fetch_page(self.build_search_url(query))
        except FetchError as e:
            logger.warning("Error searching for company websites: %s", e)
            return []

        results = parse_result_links(html, max_results=max_results)
        if not results:
            logger.info("No results found for %r. DuckDuckGo might be blocking the request.", query)
        else:
            logger.info("Search results for %r: %s", query, results)
        return results
