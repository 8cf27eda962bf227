"""
Company details from a candidate website: display name and careers page.
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Awaitable, Callable, Optional

from bs4 import BeautifulSoup

from reachout.errors import FetchError
from reachout.models import CompanyDetails

logger = logging.getLogger(__name__)

CAREERS_LINK_TEXT = "career"  # also matches "careers"


def resolve_url(href: str, base_url: str) -> str:
    """
    Resolve a potentially relative URL against a base URL.
    """
    href = (href or "").strip()
    if not href:
        return ""

    if href.startswith("http"):
        return href

    if base_url:
        return urllib.parse.urljoin(base_url, href)

    return href


def find_careers_link(soup: BeautifulSoup) -> Optional[str]:
    """href of the first anchor whose text mentions careers, if any."""
    for a in soup.find_all("a"):
        if CAREERS_LINK_TEXT in a.get_text().lower():
            # First textual match wins even when it has no usable href.
            href = a.get("href")
            return href.strip() if href and href.strip() else None
    return None


def parse_company_details(html: str, page_url: str) -> CompanyDetails:
    """
    Extract the display name (first <title>) and careers page from markup.
    """
    soup = BeautifulSoup(html or "", "lxml")

    title = soup.find("title")
    display_name = title.get_text().strip() if title else ""

    href = find_careers_link(soup)
    careers_page = resolve_url(href, page_url) if href else None
    if careers_page and urllib.parse.urlsplit(careers_page).scheme not in ("http", "https"):
        # mailto:, tel:, javascript: and the like are not fetchable pages
        logger.debug("Ignoring non-web careers link %s on %s", careers_page, page_url)
        careers_page = None

    return CompanyDetails(display_name=display_name, careers_page=careers_page or None)


async def resolve_company(
    url: str,
    fetch_page: Callable[[str], Awaitable[str]],
) -> Optional[CompanyDetails]:
    """
    Fetch a candidate website and return its CompanyDetails.

    Returns None when the page cannot be fetched or parsed.
    """
    try:
        html = await fetch_page(url)
    except FetchError as e:
        logger.warning("Error fetching company details: %s", e)
        return None

    try:
        return parse_company_details(html, url)
    except Exception as e:
        logger.warning("Error parsing company details from %s: %s", url, e)
        return None
