"""Exam and exam score models."""

from datetime import date
from decimal import Decimal

from sqlalchemy import DECIMAL, BigInteger, Boolean, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coachdesk.core.database import Base
from coachdesk.models.base import IDMixin, TimestampMixin


class Exam(Base, IDMixin, TimestampMixin):
    """Regular (teacher-marked) exam held for a batch."""

    __tablename__ = "exams"

    batch_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str | None] = mapped_column(String(100), nullable=True)
    exam_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    total_marks: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    scores: Mapped[list["ExamScore"]] = relationship(
        "ExamScore",
        back_populates="exam",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, title={self.title}, date={self.exam_date})>"


class ExamScore(Base, IDMixin, TimestampMixin):
    """Marks one student obtained in one exam."""

    __tablename__ = "exam_scores"

    exam_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    marks_obtained: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False)

    exam: Mapped["Exam"] = relationship(
        "Exam",
        back_populates="scores",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_exam_score_student"),
    )

    def __repr__(self) -> str:
        return f"<ExamScore(exam_id={self.exam_id}, student_id={self.student_id})>"
