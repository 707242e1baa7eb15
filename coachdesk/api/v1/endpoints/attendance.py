"""Attendance endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coachdesk.core.database import get_db
from coachdesk.schemas.attendance import (
    AttendanceRecordResponse,
    BulkAttendanceCreate,
    BulkAttendanceResponse,
)
from coachdesk.services.attendance import AttendanceService

router = APIRouter()


@router.post("/bulk", response_model=BulkAttendanceResponse)
def mark_bulk_attendance(
    request: BulkAttendanceCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Mark one day's attendance for a batch.
    Existing records for the student and date are updated.
    """
    return AttendanceService(db).mark_bulk(request)


@router.get("", response_model=list[AttendanceRecordResponse])
def list_attendance(
    batch_id: int,
    attendance_date: date,
    db: Annotated[Session, Depends(get_db)],
):
    """List a batch's attendance for one date."""
    return AttendanceService(db).list_records(batch_id, attendance_date)
