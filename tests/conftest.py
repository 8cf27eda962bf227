# tests/conftest.py
import asyncio
import os
from typing import Dict, List, Optional, Union

import pytest

from reachout.errors import FetchError
from reachout.models import JobListing, MergePolicy, ScanConfig
from reachout.providers.base import ListingSource
from reachout.storage.sqlite import ScanDatabase


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (network calls or external services).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch, tmp_path):
    # Keep the service from starting the scheduler and point it at a throwaway DB
    monkeypatch.setenv("REACHOUT_DEBUG", "1")
    monkeypatch.setenv("REACHOUT_DATABASE_URL", f"sqlite:///{tmp_path / 'service.db'}")
    monkeypatch.delenv("REACHOUT_PUBLIC_URL", raising=False)

    from backend.app.core.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------
# Fakes for network collaborators
# ---------------------------------------------------------------------
Page = Union[str, Exception]


class FakeFetcher:
    """
    Serves canned pages by URL and records every request.

    A page may be an exception instance (raised on every request) or a list of
    responses consumed in order (to fail a few times, then succeed).
    """

    def __init__(self, pages: Optional[Dict[str, Union[Page, List[Page]]]] = None, json_pages=None):
        self.pages = dict(pages or {})
        self.json_pages = dict(json_pages or {})
        self.requests: List[str] = []

    def _respond(self, table, url):
        self.requests.append(url)
        if url not in table:
            raise FetchError(url, status=404)
        value = table[url]
        if isinstance(value, list):
            value = value.pop(0) if len(value) > 1 else value[0]
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_text(self, url: str) -> str:
        return self._respond(self.pages, url)

    async def fetch_json(self, url: str):
        return self._respond(self.json_pages, url)


class FakeSource(ListingSource):
    """Listing source serving fixed pages of listings."""

    name = "fake"

    def __init__(self, pages: Dict[int, Union[List[JobListing], Exception]]):
        super().__init__()
        self.pages = pages
        self.calls: List[int] = []

    async def fetch_page(self, fetcher, page: int) -> List[JobListing]:
        self.calls.append(page)
        value = self.pages.get(page, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


class SleepRecorder:
    """Awaitable stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


class FakeClock:
    """Monotonic clock advanced only by its own sleep()."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.now += seconds
        await asyncio.sleep(0)


@pytest.fixture
def fast_config() -> ScanConfig:
    """ScanConfig with no real waiting."""
    return ScanConfig(
        min_interval_ms=0,
        max_attempts=3,
        retry_base_delay_ms=10,
        job_delay_s=5.0,
        request_timeout_s=5,
    )


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    db = ScanDatabase(str(tmp_path / "scan.db"))
    yield db
    db.close()


@pytest.fixture
def merging_store(tmp_path):
    db = ScanDatabase(str(tmp_path / "scan-merge.db"), merge_policy=MergePolicy.MERGE)
    yield db
    db.close()
