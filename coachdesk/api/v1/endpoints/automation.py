"""Monthly result automation endpoints."""

from typing import Any

from fastapi import APIRouter

from coachdesk.core.dependencies import ResultScheduler
from coachdesk.schemas.common import MessageResponse
from coachdesk.schemas.monthly_result import ProcessingStats, ProcessMonthRequest

router = APIRouter()


@router.get("/status")
def automation_status(scheduler: ResultScheduler) -> dict[str, Any]:
    """Get the scheduler state and the last processed month."""
    return scheduler.status()


@router.post("/trigger", response_model=ProcessingStats)
def trigger_processing(request: ProcessMonthRequest, scheduler: ResultScheduler):
    """
    Run month processing now (current month by default).
    Returns 409 while another run is in progress.
    """
    return scheduler.trigger(request.year, request.month)


@router.post("/start", response_model=MessageResponse)
def start_automation(scheduler: ResultScheduler):
    """Start the monthly result scheduler."""
    scheduler.start()
    return MessageResponse(message="Monthly result automation started")


@router.post("/stop", response_model=MessageResponse)
def stop_automation(scheduler: ResultScheduler):
    """Stop the monthly result scheduler."""
    scheduler.stop()
    return MessageResponse(message="Monthly result automation stopped")
