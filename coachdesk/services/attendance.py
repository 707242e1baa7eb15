"""Attendance service for bulk marking."""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from coachdesk.models.attendance import AttendanceRecord, AttendanceStatus
from coachdesk.models.student import Student
from coachdesk.schemas.attendance import (
    AttendanceRecordResponse,
    BulkAttendanceCreate,
    BulkAttendanceResponse,
)
from coachdesk.services.batch import BatchService

logger = logging.getLogger(__name__)


class AttendanceService:
    """Attendance management service."""

    def __init__(self, db: Session):
        self.db = db

    def mark_bulk(self, request: BulkAttendanceCreate) -> BulkAttendanceResponse:
        """Create or update one day's attendance for students of a batch.

        Rows with an unknown student or status are reported in ``errors``
        and skipped; the rest are saved.
        """
        BatchService(self.db).get_batch(request.batch_id)

        student_ids = {r.student_id for r in request.records}
        enrolled = set(self.db.execute(
            select(Student.id).where(
                Student.id.in_(student_ids),
                Student.batch_id == request.batch_id,
            )
        ).scalars().all())

        existing = {
            record.student_id: record
            for record in self.db.execute(
                select(AttendanceRecord).where(
                    AttendanceRecord.student_id.in_(student_ids),
                    AttendanceRecord.attendance_date == request.attendance_date,
                )
            ).scalars().all()
        }

        created = updated = 0
        errors = []
        for row, entry in enumerate(request.records, start=1):
            if entry.student_id not in enrolled:
                errors.append({
                    "row": row,
                    "student_id": entry.student_id,
                    "error": f"Student {entry.student_id} is not in batch {request.batch_id}",
                })
                continue
            try:
                status = AttendanceStatus.from_string(entry.status)
            except ValueError as e:
                errors.append({"row": row, "student_id": entry.student_id, "error": str(e)})
                continue

            record = existing.get(entry.student_id)
            if record:
                record.status = status
                record.batch_id = request.batch_id
                record.notes = entry.notes
                updated += 1
            else:
                record = AttendanceRecord(
                    student_id=entry.student_id,
                    batch_id=request.batch_id,
                    attendance_date=request.attendance_date,
                    status=status,
                    notes=entry.notes,
                )
                self.db.add(record)
                existing[entry.student_id] = record
                created += 1

        self.db.flush()
        logger.info(
            f"Attendance for batch {request.batch_id} on {request.attendance_date}: "
            f"{created} created, {updated} updated, {len(errors)} errors"
        )
        return BulkAttendanceResponse(
            attendance_date=request.attendance_date,
            created=created,
            updated=updated,
            errors=errors,
        )

    def list_records(self, batch_id: int, attendance_date: date) -> list[AttendanceRecordResponse]:
        """List a batch's attendance for one date."""
        records = self.db.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.batch_id == batch_id,
                AttendanceRecord.attendance_date == attendance_date,
            )
            .order_by(AttendanceRecord.student_id)
        ).scalars().all()
        return [AttendanceRecordResponse.model_validate(r) for r in records]
