"""Monthly result, bonus and top performer models."""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coachdesk.core.database import Base
from coachdesk.models.base import IDMixin, TimestampMixin

Percent = Numeric(6, 2, asdecimal=False)


class MonthlyBonus(Base, IDMixin, TimestampMixin):
    """Discretionary bonus percentage a teacher grants for one month."""

    __tablename__ = "monthly_bonuses"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus_percent: Mapped[float] = mapped_column(Percent, nullable=False, default=0.0)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "student_id", "batch_id", "year", "month",
            name="uq_monthly_bonus_student_period",
        ),
    )


class MonthlyResult(Base, IDMixin, TimestampMixin):
    """Computed monthly result for one student in one batch cohort.

    Rows are replaced as a whole set per (batch_id, year, month); class_rank
    is only meaningful against the cohort it was computed with.
    """

    __tablename__ = "monthly_results"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    class_level: Mapped[str] = mapped_column(String(20), nullable=False)

    # Exam performance
    exam_component_percent: Mapped[float] = mapped_column(Percent, nullable=False, default=0.0)
    total_exams: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Attendance performance
    present_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    excused_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    absent_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    working_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attendance_component_percent: Mapped[float] = mapped_column(Percent, nullable=False, default=0.0)

    bonus_percent: Mapped[float] = mapped_column(Percent, nullable=False, default=0.0)

    # Final result
    final_percent: Mapped[float] = mapped_column(Percent, nullable=False, default=0.0)
    gpa: Mapped[float] = mapped_column(Percent, nullable=False, default=0.0)
    letter_grade: Mapped[str] = mapped_column(String(5), nullable=False)
    grade_description: Mapped[str] = mapped_column(String(100), nullable=False)
    class_rank: Mapped[int] = mapped_column(Integer, nullable=False)
    total_students: Mapped[int] = mapped_column(Integer, nullable=False)

    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    student: Mapped["Student"] = relationship("Student", lazy="selectin")

    __table_args__ = (
        UniqueConstraint(
            "student_id", "batch_id", "year", "month",
            name="uq_monthly_result_student_period",
        ),
    )

    @property
    def student_name(self) -> str:
        """Get student name from relationship."""
        return self.student.student_name if self.student else ""

    def __repr__(self) -> str:
        return (
            f"<MonthlyResult(student_id={self.student_id}, batch_id={self.batch_id}, "
            f"period={self.year}-{self.month:02d}, rank={self.class_rank})>"
        )


class TopPerformer(Base, IDMixin):
    """Cached top performers per class level for a month."""

    __tablename__ = "top_performers"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    class_level: Mapped[str] = mapped_column(String(20), nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    final_percent: Mapped[float] = mapped_column(Percent, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
