"""
Contact email extraction from web pages.

Addresses come from two places:
- text nodes inside the document body, matched with EMAIL_PATTERN
- mailto: links, with the scheme prefix stripped

Results keep first-seen order, are de-duplicated case-sensitively, and are
filtered of placeholders, asset filenames and URL fragments.
"""

from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable, Iterable, List

from bs4 import BeautifulSoup, Comment, NavigableString

from reachout.errors import FetchError

logger = logging.getLogger(__name__)


EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

MAILTO_PREFIX = "mailto:"

# Substrings that mark an address as a placeholder
PLACEHOLDER_MARKERS = ("example", "placeholder")

# Matches like "logo@2x.png" are image filenames, not addresses
ASSET_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif")


def is_contact_email(email: str) -> bool:
    """Check that a candidate is not a placeholder, asset name or URL fragment."""
    if not email:
        return False
    if any(marker in email for marker in PLACEHOLDER_MARKERS):
        return False
    if email.lower().endswith(ASSET_SUFFIXES):
        return False
    if email.startswith("?"):
        return False
    if "/" in email:
        return False
    return True


def filter_emails(emails: Iterable[str]) -> List[str]:
    """De-duplicate (first occurrence wins) and drop non-contact candidates."""
    seen = set()
    result: List[str] = []
    for email in emails:
        if email in seen:
            continue
        seen.add(email)
        if is_contact_email(email):
            result.append(email)
    return result


def _text_nodes(soup: BeautifulSoup) -> Iterable[str]:
    root = soup.body or soup
    for node in root.descendants:
        if isinstance(node, NavigableString) and not isinstance(node, Comment):
            yield str(node)


def extract_emails_from_html(html: str) -> List[str]:
    """
    Extract contact email addresses from markup.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "lxml")
    candidates: List[str] = []

    for text in _text_nodes(soup):
        candidates.extend(EMAIL_PATTERN.findall(text))

    for a in soup.find_all("a", href=True):
        href = a["href"]
        if href.startswith(MAILTO_PREFIX):
            candidates.append(href[len(MAILTO_PREFIX):])

    return filter_emails(candidates)


async def scan_emails(
    url: str,
    fetch_page: Callable[[str], Awaitable[str]],
) -> List[str]:
    """
    Fetch a page and return the contact emails found on it.

    Returns an empty list when the page cannot be fetched or parsed.
    """
    try:
        html = await fetch_page(url)
    except FetchError as e:
        logger.warning("Error fetching emails: %s", e)
        return []

    try:
        return extract_emails_from_html(html)
    except Exception as e:
        logger.warning("Error extracting emails from %s: %s", url, e)
        return []
