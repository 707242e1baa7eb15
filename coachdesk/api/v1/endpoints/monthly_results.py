"""Monthly result endpoints."""

from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from coachdesk.core.database import get_db
from coachdesk.core.dependencies import AppCtx
from coachdesk.core.exceptions import NotFoundError
from coachdesk.schemas.monthly_result import (
    AvailableMonth,
    CohortResultResponse,
    GenerateResultsRequest,
    MonthlyResultResponse,
    MonthlyResultStats,
    ProcessedCheckResponse,
    ProcessingStats,
    ProcessMonthRequest,
    TopPerformerResponse,
)
from coachdesk.services.calendar import local_today
from coachdesk.services.monthly_result import MonthlyResultService

router = APIRouter()


@router.post("/generate", response_model=CohortResultResponse)
def generate_results(
    request: GenerateResultsRequest,
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Recompute a batch's results for a month, replacing any stored ones.
    Returns 409 while the same batch and month are being processed.
    """
    service = MonthlyResultService(db, context)
    return service.generate_for_batch(request.batch_id, request.year, request.month)


@router.get("", response_model=list[MonthlyResultResponse])
def list_results(
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
    batch_id: int = Query(...),
    year: int = Query(...),
    month: int = Query(...),
):
    """Get a batch's stored results for a month, ordered by rank."""
    return MonthlyResultService(db, context).list_results(batch_id, year, month)


@router.get("/export")
def export_results(
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
    batch_id: int = Query(...),
    year: int = Query(...),
    month: int = Query(...),
):
    """Download a batch's monthly results as an Excel file."""
    content = MonthlyResultService(db, context).export_results(batch_id, year, month)
    filename = f"monthly_results_batch{batch_id}_{year}_{month:02d}.xlsx"

    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("/process-month", response_model=ProcessingStats)
def process_month(
    request: ProcessMonthRequest,
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Process every active batch for a month (current month by default).
    Failing batches are reported in the stats and do not stop the run.
    """
    today = local_today(context.settings.SCHEDULER_TIMEZONE)
    year = request.year or today.year
    month = request.month or today.month
    return MonthlyResultService(db, context).process_month(year, month)


@router.get("/stats/{year}/{month}", response_model=MonthlyResultStats)
def get_processing_stats(
    year: int,
    month: int,
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
):
    """Get summary statistics of a month's stored results."""
    stats = MonthlyResultService(db, context).get_processing_stats(year, month)
    if stats is None:
        raise NotFoundError("Monthly results", f"{year}-{month:02d}")
    return stats


@router.get("/check-processed/{year}/{month}", response_model=ProcessedCheckResponse)
def check_processed(
    year: int,
    month: int,
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
):
    """Check whether a month already has stored results."""
    is_processed = MonthlyResultService(db, context).is_month_processed(year, month)
    message = "Month already processed" if is_processed else "Month not processed yet"
    return ProcessedCheckResponse(year=year, month=month, is_processed=is_processed, message=message)


@router.get("/available-months", response_model=list[AvailableMonth])
def available_months(
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
    count: int = Query(6, ge=1, le=24),
):
    """List recent months with their processing state."""
    return MonthlyResultService(db, context).available_months(
        local_today(context.settings.SCHEDULER_TIMEZONE), count
    )


@router.get("/top-performers/{year}/{month}", response_model=list[TopPerformerResponse])
def top_performers(
    year: int,
    month: int,
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
    class_level: str | None = None,
):
    """Get the top performers of a month per class level."""
    return MonthlyResultService(db, context).get_top_performers(year, month, class_level)
