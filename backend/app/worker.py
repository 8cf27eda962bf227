"""
Background worker for aggregation runs.

Every trigger (startup, interval scheduler, HTTP) goes through one
RunCoordinator so runs never overlap.
"""

import logging
from typing import Optional

import httpx

from backend.app.core.config import Settings, get_settings
from reachout.coordinator import RunCoordinator
from reachout.models import RunStats

logger = logging.getLogger(__name__)

_coordinator: Optional[RunCoordinator] = None


async def run_pipeline(settings: Optional[Settings] = None) -> RunStats:
    """Run one full aggregation pass with the configured source and store."""
    settings = settings or get_settings()

    # Import here to keep app startup light
    from reachout.orchestrator import run_aggregation
    from reachout.providers.adzuna import AdzunaSource
    from reachout.storage import open_store

    config = settings.scan_config()
    source = AdzunaSource(
        app_id=settings.adzuna_app_id or None,
        app_key=settings.adzuna_app_key or None,
        country=config.country,
        results_per_page=config.results_per_page,
        what=config.what,
    )
    store = open_store(settings.database_url, merge_policy=config.merge_policy)
    try:
        return await run_aggregation(config, store, source)
    finally:
        store.close()


def get_coordinator() -> RunCoordinator:
    """Process-wide run coordinator."""
    global _coordinator
    if _coordinator is None:
        _coordinator = RunCoordinator(run_pipeline)
    return _coordinator


async def run_scheduled_scan() -> None:
    """Interval job: run unless a run is already in progress."""
    started = get_coordinator().start(trigger="scheduler")
    if started:
        logger.info("[Scheduler] Scan started")
    else:
        logger.info("[Scheduler] Scan already running, skipping this tick")


async def self_ping() -> None:
    """Hit our own health endpoint through the public URL."""
    settings = get_settings()
    if not settings.public_url:
        return
    url = f"{settings.public_url}/health"
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(url)
        logger.info("[Ping] %s -> %d", url, resp.status_code)
    except httpx.HTTPError as e:
        logger.warning("[Ping] %s failed: %s", url, e)
