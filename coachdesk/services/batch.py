"""Batch and student roster services."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from coachdesk.core.exceptions import NotFoundError
from coachdesk.models.batch import Batch, BatchStatus
from coachdesk.models.student import Student
from coachdesk.schemas.batch import BatchCreate, BatchResponse
from coachdesk.schemas.student import StudentCreate, StudentResponse

logger = logging.getLogger(__name__)


class BatchService:
    """Batch management service."""

    def __init__(self, db: Session):
        self.db = db

    def create_batch(self, request: BatchCreate) -> BatchResponse:
        """Create a new batch."""
        batch = Batch(
            name=request.name,
            subject=request.subject,
            class_level=request.class_level,
            status=request.status,
        )
        self.db.add(batch)
        self.db.flush()
        self.db.refresh(batch)
        logger.info(f"Created batch {batch.name} ({batch.id})")
        return BatchResponse.model_validate(batch)

    def get_batch(self, batch_id: int) -> Batch:
        """Get batch by ID."""
        batch = self.db.get(Batch, batch_id)
        if not batch:
            raise NotFoundError("Batch", str(batch_id))
        return batch

    def list_batches(self, status: BatchStatus | None = None) -> list[BatchResponse]:
        """List batches, optionally filtered by status."""
        query = select(Batch)
        if status:
            query = query.where(Batch.status == status)
        batches = self.db.execute(query.order_by(Batch.id)).scalars().all()
        return [BatchResponse.model_validate(b) for b in batches]


class StudentService:
    """Student roster service."""

    def __init__(self, db: Session):
        self.db = db

    def create_student(self, request: StudentCreate) -> StudentResponse:
        """Enroll a student in a batch."""
        BatchService(self.db).get_batch(request.batch_id)

        student = Student(
            batch_id=request.batch_id,
            student_name=request.student_name,
            class_level=request.class_level,
            phone_no=request.phone_no,
            is_active=request.is_active,
        )
        self.db.add(student)
        self.db.flush()
        self.db.refresh(student)
        return StudentResponse.model_validate(student)

    def list_students(
        self,
        batch_id: int | None = None,
        active_only: bool = False,
    ) -> list[StudentResponse]:
        """List students, optionally for one batch."""
        query = select(Student)
        if batch_id is not None:
            query = query.where(Student.batch_id == batch_id)
        if active_only:
            query = query.where(Student.is_active.is_(True))
        students = self.db.execute(query.order_by(Student.id)).scalars().all()
        return [StudentResponse.model_validate(s) for s in students]
