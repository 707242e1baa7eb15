"""Attendance schemas."""

from datetime import date

from pydantic import Field

from coachdesk.models.attendance import AttendanceStatus
from coachdesk.schemas.common import BaseSchema


class SingleAttendanceInput(BaseSchema):
    """Attendance mark of one student; status accepts P, E, A or full names."""

    student_id: int
    status: str = Field(..., min_length=1, max_length=10)
    notes: str | None = None


class BulkAttendanceCreate(BaseSchema):
    """Mark attendance for a batch on one date."""

    batch_id: int
    attendance_date: date
    records: list[SingleAttendanceInput] = Field(..., min_length=1)


class AttendanceRecordResponse(BaseSchema):
    """Attendance record response schema."""

    id: int
    student_id: int
    batch_id: int
    attendance_date: date
    status: AttendanceStatus
    notes: str | None


class BulkAttendanceResponse(BaseSchema):
    """Outcome of a bulk attendance save."""

    attendance_date: date
    created: int
    updated: int
    errors: list[dict] = []
