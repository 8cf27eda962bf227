"""
HTTP fetcher for listing APIs, search result pages and company websites.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from reachout.errors import FetchError


# Desktop browser identity; several company sites block obvious bots.
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status: int = 0
    text: str = ""
    json_data: Any = None
    content_type: str = ""
    elapsed_ms: float = 0


class HttpFetcher:
    """
    Async HTTP fetcher with a fixed browser User-Agent and a bounded timeout.

    One call is one attempt: failures raise FetchError and retrying is left to
    the caller (see reachout.fetchers.throttle.with_retry).
    """

    USER_AGENT = BROWSER_USER_AGENT

    def __init__(self, timeout_s: int = 15):
        self.timeout_s = timeout_s
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HttpFetcher":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def start(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=10,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            headers = {
                "User-Agent": self.USER_AGENT,
                "Accept": "text/html,application/json,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
            }
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers=headers,
                cookie_jar=aiohttp.CookieJar(),
            )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def fetch(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> FetchResult:
        """
        Fetch a URL once.

        Raises FetchError on timeouts, connection problems and HTTP error statuses.
        """
        if self._session is None:
            await self.start()

        start_time = time.time()
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        try:
            async with self._session.get(url, timeout=timeout, headers=headers, allow_redirects=True) as resp:
                if resp.status >= 400:
                    raise FetchError(url, status=resp.status)

                content_type = resp.headers.get("Content-Type", "")
                text = await resp.text(errors="replace")

                json_data = None
                if "json" in content_type.lower():
                    try:
                        json_data = json.loads(text)
                    except ValueError:
                        json_data = None

                return FetchResult(
                    url=url,
                    status=resp.status,
                    text=text,
                    json_data=json_data,
                    content_type=content_type,
                    elapsed_ms=(time.time() - start_time) * 1000,
                )
        except asyncio.TimeoutError as e:
            raise FetchError(url, cause=e) from e
        except aiohttp.ClientError as e:
            raise FetchError(url, cause=e) from e

    async def fetch_text(self, url: str) -> str:
        """Fetch a page and return its markup."""
        result = await self.fetch(url)
        return result.text

    async def fetch_json(self, url: str) -> Any:
        """Fetch and expect a JSON response."""
        result = await self.fetch(url, headers={"Accept": "application/json"})
        if result.json_data is not None:
            return result.json_data
        try:
            return json.loads(result.text or "null")
        except ValueError as e:
            raise FetchError(url, cause=e) from e
