"""Exam and exam score schemas."""

from datetime import date

from pydantic import Field

from coachdesk.schemas.common import BaseSchema, TimestampSchema


class ExamCreate(BaseSchema):
    """Exam creation schema."""

    batch_id: int
    title: str = Field(..., min_length=1, max_length=255)
    subject: str | None = Field(None, max_length=100)
    exam_date: date
    total_marks: float = Field(..., gt=0)


class ExamResponse(TimestampSchema):
    """Exam response schema."""

    id: int
    batch_id: int
    title: str
    subject: str | None
    exam_date: date
    total_marks: float
    is_active: bool


class ScoreInput(BaseSchema):
    """Marks of one student in an exam."""

    student_id: int
    marks_obtained: float = Field(..., ge=0)


class BulkScoreCreate(BaseSchema):
    """Record marks for several students at once."""

    scores: list[ScoreInput] = Field(..., min_length=1)


class ExamScoreResponse(BaseSchema):
    """Exam score response schema."""

    exam_id: int
    student_id: int
    marks_obtained: float


class BulkScoreResponse(BaseSchema):
    """Outcome of a bulk score save."""

    exam_id: int
    created: int
    updated: int
