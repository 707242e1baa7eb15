"""Academic calendar endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coachdesk.core.database import get_db
from coachdesk.core.dependencies import AppCtx
from coachdesk.schemas.calendar import CalendarMonthResponse, CalendarUpdateRequest
from coachdesk.services.calendar import CalendarService

router = APIRouter()


@router.get("/{year}/{month}", response_model=CalendarMonthResponse)
def get_calendar_month(
    year: int,
    month: int,
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a month's calendar; unset days follow the default working weekdays."""
    return CalendarService(db, context.settings).get_month(year, month)


@router.put("/{year}/{month}", response_model=CalendarMonthResponse)
def update_calendar_month(
    year: int,
    month: int,
    request: CalendarUpdateRequest,
    context: AppCtx,
    db: Annotated[Session, Depends(get_db)],
):
    """Replace a month's calendar with the given day overrides."""
    return CalendarService(db, context.settings).update_month(year, month, request.days)
