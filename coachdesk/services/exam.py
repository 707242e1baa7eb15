"""Exam and exam score service."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from coachdesk.core.exceptions import NotFoundError, ValidationError
from coachdesk.models.exam import Exam, ExamScore
from coachdesk.models.student import Student
from coachdesk.schemas.exam import (
    BulkScoreCreate,
    BulkScoreResponse,
    ExamCreate,
    ExamResponse,
    ExamScoreResponse,
)
from coachdesk.services.batch import BatchService

logger = logging.getLogger(__name__)


class ExamService:
    """Exam management service."""

    def __init__(self, db: Session):
        self.db = db

    def create_exam(self, request: ExamCreate) -> ExamResponse:
        """Create an exam for a batch."""
        BatchService(self.db).get_batch(request.batch_id)

        exam = Exam(
            batch_id=request.batch_id,
            title=request.title,
            subject=request.subject,
            exam_date=request.exam_date,
            total_marks=Decimal(str(request.total_marks)),
        )
        self.db.add(exam)
        self.db.flush()
        self.db.refresh(exam)
        return ExamResponse.model_validate(exam)

    def get_exam(self, exam_id: int) -> Exam:
        """Get exam by ID."""
        exam = self.db.get(Exam, exam_id)
        if not exam:
            raise NotFoundError("Exam", str(exam_id))
        return exam

    def list_exams(self, batch_id: int | None = None) -> list[ExamResponse]:
        """List exams newest first."""
        query = select(Exam)
        if batch_id is not None:
            query = query.where(Exam.batch_id == batch_id)
        exams = self.db.execute(query.order_by(Exam.exam_date.desc(), Exam.id)).scalars().all()
        return [ExamResponse.model_validate(e) for e in exams]

    def record_scores(self, exam_id: int, request: BulkScoreCreate) -> BulkScoreResponse:
        """Create or update marks for several students of the exam's batch."""
        exam = self.get_exam(exam_id)

        student_ids = {s.student_id for s in request.scores}
        if len(student_ids) != len(request.scores):
            raise ValidationError("Duplicate student in score list")

        enrolled = set(self.db.execute(
            select(Student.id).where(
                Student.id.in_(student_ids),
                Student.batch_id == exam.batch_id,
            )
        ).scalars().all())
        missing = sorted(student_ids - enrolled)
        if missing:
            raise ValidationError(
                "Students are not enrolled in the exam's batch",
                details={"student_ids": missing},
            )

        over_total = [s.student_id for s in request.scores if s.marks_obtained > exam.total_marks]
        if over_total:
            raise ValidationError(
                f"Marks exceed the exam total of {exam.total_marks}",
                details={"student_ids": over_total},
            )

        existing = {
            score.student_id: score
            for score in self.db.execute(
                select(ExamScore).where(
                    ExamScore.exam_id == exam_id,
                    ExamScore.student_id.in_(student_ids),
                )
            ).scalars().all()
        }

        created = updated = 0
        for entry in request.scores:
            marks = Decimal(str(entry.marks_obtained))
            score = existing.get(entry.student_id)
            if score:
                score.marks_obtained = marks
                updated += 1
            else:
                self.db.add(ExamScore(
                    exam_id=exam_id,
                    student_id=entry.student_id,
                    marks_obtained=marks,
                ))
                created += 1

        self.db.flush()
        logger.info(f"Exam {exam_id}: {created} scores created, {updated} updated")
        return BulkScoreResponse(exam_id=exam_id, created=created, updated=updated)

    def list_scores(self, exam_id: int) -> list[ExamScoreResponse]:
        """List the scores recorded for an exam."""
        self.get_exam(exam_id)
        scores = self.db.execute(
            select(ExamScore).where(ExamScore.exam_id == exam_id).order_by(ExamScore.student_id)
        ).scalars().all()
        return [ExamScoreResponse.model_validate(s) for s in scores]
