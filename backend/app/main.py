"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.app.api import runs
from backend.app.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    scheduler = None

    # Start scheduler if not in debug mode
    if not settings.debug:
        from apscheduler.schedulers.asyncio import AsyncIOScheduler
        from backend.app.worker import get_coordinator, run_scheduled_scan, self_ping

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            run_scheduled_scan,
            "interval",
            hours=settings.scan_interval_hours,
            id="scheduled_scan",
        )
        if settings.public_url:
            scheduler.add_job(
                self_ping,
                "interval",
                minutes=settings.self_ping_minutes,
                id="self_ping",
            )
        scheduler.start()
        logger.info("[Scheduler] Started, running every %dh", settings.scan_interval_hours)

        if settings.run_on_startup:
            get_coordinator().start(trigger="startup")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        await get_coordinator().cancel()


def create_app() -> FastAPI:
    """Create and configure the FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        description="Job listing to company contact email aggregator",
        lifespan=lifespan,
    )

    app.include_router(runs.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    uvicorn.run("backend.app.main:app", host="0.0.0.0", port=get_settings().port)
