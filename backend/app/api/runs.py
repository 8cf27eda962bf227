"""
Run trigger and status endpoints.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from backend.app.worker import get_coordinator
from reachout.coordinator import RunCoordinator

router = APIRouter(prefix="/runs", tags=["runs"])


class TriggerResponse(BaseModel):
    status: str
    message: str = ""


class RunStatsResponse(BaseModel):
    run_id: int
    started_at: str
    finished_at: Optional[str] = None
    pages_processed: int = 0
    jobs_processed: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    records_with_emails: int = 0
    persistence_errors: int = 0


class RunStatusResponse(BaseModel):
    running: bool
    last_trigger: str = ""
    last_error: Optional[str] = None
    last_stats: Optional[RunStatsResponse] = None


@router.post("", response_model=TriggerResponse, status_code=202)
async def trigger_run(coordinator: RunCoordinator = Depends(get_coordinator)):
    """
    Start an aggregation run in the background.

    Returns 409 when a run is already in progress.
    """
    if not coordinator.start(trigger="http"):
        return JSONResponse(
            status_code=409,
            content=TriggerResponse(status="busy", message="A run is already in progress").model_dump(),
        )
    return TriggerResponse(status="started", message="Run started")


@router.get("/status", response_model=RunStatusResponse)
async def run_status(coordinator: RunCoordinator = Depends(get_coordinator)):
    """Whether a run is active, and the outcome of the last one."""
    status = coordinator.status()
    stats = status["last_stats"]
    return RunStatusResponse(
        running=status["running"],
        last_trigger=status["last_trigger"],
        last_error=status["last_error"],
        last_stats=RunStatsResponse(**asdict(stats)) if stats else None,
    )
