"""
Main orchestrator for ReachOut aggregation runs.

Walks the listing source page by page and, for each job listing, looks up
candidate company websites, scans them (and their careers pages) for contact
emails, and saves one ScanRecord per listing.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any, Awaitable, Callable, List, Optional

from reachout.errors import FetchError, PersistenceError
from reachout.extract.company import resolve_company
from reachout.extract.emails import scan_emails
from reachout.fetchers.http import HttpFetcher
from reachout.fetchers.throttle import RateLimiter, with_retry
from reachout.models import JobListing, RunStats, ScanConfig, ScanRecord, now_utc_iso
from reachout.providers.base import ListingSource
from reachout.providers.discovery import WebsiteDiscovery, company_query
from reachout.storage.base import ScanStore

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
FetchPage = Callable[[str], Awaitable[str]]


def make_page_fetcher(
    fetcher: Any,
    config: ScanConfig,
    limiter: Optional[RateLimiter] = None,
    sleep: Sleep = asyncio.sleep,
) -> FetchPage:
    """
    Build a fetch_page(url) callable: retried with backoff, and rate limited
    on every attempt when a limiter is given.
    """
    attempt = limiter.wrap(fetcher.fetch_text) if limiter is not None else fetcher.fetch_text

    async def fetch_page(url: str) -> str:
        return await with_retry(
            lambda: attempt(url),
            max_attempts=config.max_attempts,
            base_delay_ms=config.retry_base_delay_ms,
            sleep=sleep,
        )

    return fetch_page


def _union(existing: List[str], new: List[str]) -> List[str]:
    return list(dict.fromkeys([*existing, *new]))


async def scan_listing(
    listing: JobListing,
    discovery: WebsiteDiscovery,
    fetch_page: FetchPage,
    config: ScanConfig,
) -> ScanRecord:
    """
    Resolve one job listing into a ScanRecord.

    Candidates are tried in search order. The first candidate after which the
    accumulated email set is non-empty ends the search; later candidates are
    never fetched.
    """
    record = ScanRecord.for_listing(listing)
    query = company_query(listing.company_name, config.search_suffix)
    websites = await discovery.search(query, max_results=config.max_candidates)

    emails: List[str] = []
    for website in websites:
        details = await resolve_company(website, fetch_page)
        if details is None:
            record.scanned_pages.append(website)
            continue

        record.company_info = details.display_name
        record.careers_page = details.careers_page

        found = await scan_emails(website, fetch_page)
        record.scanned_pages.append(website)

        if details.careers_page:
            career_emails = await scan_emails(details.careers_page, fetch_page)
            record.scanned_pages.append(details.careers_page)
            found = _union(found, career_emails)

        emails = _union(emails, found)
        if emails:
            logger.info("Website: %s", website)
            break

    record.emails = emails
    return record


def _log_record(record: ScanRecord) -> None:
    logger.info("Company Name: %s", record.company_name)
    logger.info("Company Info: %s", record.company_info)
    logger.info("Location: %s", record.location)
    logger.info("Listing Date: %s", record.listing_date)
    logger.info("Careers Page: %s", record.careers_page)
    logger.info("Emails: %s", ", ".join(record.emails))
    logger.info("Scanned Pages: %s", ", ".join(record.scanned_pages))
    logger.info("---")


def flush_pending(store: ScanStore, pending: List[ScanRecord], stats: RunStats) -> List[ScanRecord]:
    """
    Write pending records in order and return the ones still unsaved.

    Stops at the first PersistenceError so the failed record and everything
    after it are retried on the next flush.
    """
    remaining = list(pending)
    while remaining:
        record = remaining[0]
        try:
            outcome = store.upsert(record)
        except PersistenceError as e:
            stats.persistence_errors += 1
            logger.warning("Error saving %s (%s): %s", record.company_name, record.location, e)
            return remaining
        stats.count_outcome(outcome)
        remaining.pop(0)
    return remaining


async def _fetch_listings(
    source: ListingSource,
    fetcher: Any,
    page: int,
    config: ScanConfig,
    sleep: Sleep,
) -> List[JobListing]:
    try:
        return await with_retry(
            lambda: source.fetch_page(fetcher, page),
            max_attempts=config.max_attempts,
            base_delay_ms=config.retry_base_delay_ms,
            sleep=sleep,
        )
    except FetchError as e:
        logger.warning("Error fetching job listings from %s (page %d): %s", source.name, page, e)
        return []


async def run_aggregation(
    config: ScanConfig,
    store: ScanStore,
    source: ListingSource,
    fetcher: Optional[Any] = None,
    discovery: Optional[WebsiteDiscovery] = None,
    limiter: Optional[RateLimiter] = None,
    sleep: Sleep = asyncio.sleep,
) -> RunStats:
    """
    Run a complete aggregation pass over the configured pages.

    Args:
        config: Page range, politeness and persistence options
        store: Where ScanRecords are saved
        source: Listing source to page through
        fetcher: Object with fetch_text/fetch_json; an HttpFetcher is created
            (and closed) when omitted
        discovery: Website discovery; built on the fetcher when omitted
        limiter: Rate limiter shared by company and email page fetches
        sleep: Awaitable sleep used for backoff and the inter-job pause

    Returns:
        RunStats with run statistics
    """
    try:
        run_id = store.start_run(json.dumps(asdict(config), default=str))
    except PersistenceError as e:
        logger.warning("Run will not be tracked: %s", e)
        run_id = 0
    stats = RunStats(run_id=run_id, started_at=now_utc_iso())

    owns_fetcher = fetcher is None
    if owns_fetcher:
        fetcher = HttpFetcher(timeout_s=config.request_timeout_s)
        await fetcher.start()

    try:
        limiter = limiter or RateLimiter(min_interval_ms=config.min_interval_ms)
        fetch_page = make_page_fetcher(fetcher, config, limiter=limiter, sleep=sleep)
        if discovery is None:
            discovery = WebsiteDiscovery(make_page_fetcher(fetcher, config, sleep=sleep))

        for page in config.pages:
            listings = await _fetch_listings(source, fetcher, page, config, sleep)
            pending: List[ScanRecord] = []

            for listing in listings:
                logger.info("Processing %s...", listing.company_name)
                record = await scan_listing(listing, discovery, fetch_page, config)
                stats.jobs_processed += 1
                if record.emails:
                    stats.records_with_emails += 1
                _log_record(record)

                pending.append(record)
                pending = flush_pending(store, pending, stats)
                await sleep(config.job_delay_s)

            if pending:
                logger.warning("%d record(s) from page %d could not be saved", len(pending), page)
            stats.pages_processed += 1
            logger.info("Completed processing page %d", page)
    finally:
        if owns_fetcher:
            await fetcher.close()

    stats.finished_at = now_utc_iso()
    if run_id:
        try:
            store.finish_run(run_id, stats)
        except PersistenceError as e:
            logger.warning("Could not save run statistics: %s", e)
    logger.info(
        "Run complete: %d jobs, %d inserted, %d updated, %d skipped, %d with emails",
        stats.jobs_processed,
        stats.records_inserted,
        stats.records_updated,
        stats.records_skipped,
        stats.records_with_emails,
    )
    return stats
