"""
Single-flight run coordination.

Runs can be requested by the interval scheduler, the HTTP trigger or at app
startup. At most one runs at a time; a request that arrives while a run is
active is refused rather than queued.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from reachout.models import RunStats

logger = logging.getLogger(__name__)


class RunCoordinator:
    """Starts aggregation runs, never more than one at a time."""

    def __init__(self, run_fn: Callable[[], Awaitable[RunStats]]):
        self._run_fn = run_fn
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self.last_stats: Optional[RunStats] = None
        self.last_error: Optional[str] = None
        self.last_trigger: str = ""

    @property
    def running(self) -> bool:
        task_active = self._task is not None and not self._task.done()
        return task_active or self._lock.locked()

    def start(self, trigger: str = "manual") -> bool:
        """
        Start a run in the background.

        Returns False when a run is already in progress.
        """
        if self.running:
            logger.info("[Runs] %s run not started: a run is already in progress", trigger)
            return False
        self._task = asyncio.create_task(self._execute(trigger))
        return True

    async def wait(self) -> None:
        """Wait for the background run, if any, to finish."""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def cancel(self) -> None:
        """Cancel the background run, if any, and wait for it to stop."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.info("[Runs] Run cancelled (trigger=%s)", self.last_trigger)

    async def _execute(self, trigger: str) -> Optional[RunStats]:
        async with self._lock:
            self.last_trigger = trigger
            logger.info("[Runs] Starting run (trigger=%s)", trigger)
            try:
                stats = await self._run_fn()
            except Exception as e:
                self.last_error = f"{type(e).__name__}: {e}"
                logger.exception("[Runs] Run failed (trigger=%s)", trigger)
                return None
            self.last_stats = stats
            self.last_error = None
            logger.info("[Runs] Run finished (trigger=%s, jobs=%d)", trigger, stats.jobs_processed)
            return stats

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "last_trigger": self.last_trigger,
            "last_error": self.last_error,
            "last_stats": self.last_stats,
        }
