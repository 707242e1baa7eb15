"""Persistence contract consumed by the monthly result aggregator.

ResultStore is the only thing the aggregator knows about storage.
SqlResultStore implements it over SQLAlchemy for both SQLite and
PostgreSQL; tests substitute an in-memory implementation.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from coachdesk.core.config import Settings
from coachdesk.models.attendance import AttendanceRecord, AttendanceStatus
from coachdesk.models.exam import Exam, ExamScore
from coachdesk.models.monthly_result import MonthlyBonus, MonthlyResult
from coachdesk.models.student import Student
from coachdesk.services.calendar import CalendarService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterStudent:
    """Student as seen by the aggregator."""

    student_id: int
    student_name: str
    class_level: str


@dataclass(frozen=True)
class ExamScoreEntry:
    """Marks for one exam, with the exam's total marks."""

    student_id: int
    exam_id: int
    marks_obtained: float
    total_marks: float


@dataclass(frozen=True)
class AttendanceEntry:
    """Attendance on one working day."""

    student_id: int
    attendance_date: date
    status: AttendanceStatus


@dataclass(frozen=True)
class MonthlyResultData:
    """Computed monthly result for one student."""

    student_id: int
    student_name: str
    batch_id: int
    year: int
    month: int
    class_level: str
    exam_component_percent: float
    total_exams: int
    present_days: int
    excused_days: int
    absent_days: int
    working_days: int
    attendance_component_percent: float
    bonus_percent: float
    final_percent: float
    gpa: float
    letter_grade: str
    grade_description: str
    class_rank: int = 0
    total_students: int = 0


class ResultStore(Protocol):
    """Data the aggregator reads and the sink it writes to."""

    def list_students(self, batch_id: int) -> Sequence[RosterStudent]: ...

    def list_exam_scores(
        self, student_id: int, period_start: date, period_end: date
    ) -> Sequence[ExamScoreEntry]: ...

    def list_attendance(
        self, student_id: int, period_start: date, period_end: date
    ) -> Sequence[AttendanceEntry]: ...

    def count_working_days(self, year: int, month: int) -> int: ...

    def get_bonus(self, student_id: int, batch_id: int, year: int, month: int) -> float: ...

    def replace_monthly_results(
        self, batch_id: int, year: int, month: int, results: Sequence[MonthlyResultData]
    ) -> None: ...


class SqlResultStore:
    """ResultStore backed by the application database."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def list_students(self, batch_id: int) -> list[RosterStudent]:
        """Get the active roster of a batch."""
        result = self.db.execute(
            select(Student.id, Student.student_name, Student.class_level)
            .where(Student.batch_id == batch_id, Student.is_active.is_(True))
            .order_by(Student.id)
        )
        return [RosterStudent(student_id=r[0], student_name=r[1], class_level=r[2]) for r in result.all()]

    def list_exam_scores(self, student_id: int, period_start: date, period_end: date) -> list[ExamScoreEntry]:
        """Get a student's marks in active exams held within the period."""
        result = self.db.execute(
            select(ExamScore.student_id, ExamScore.exam_id, ExamScore.marks_obtained, Exam.total_marks)
            .join(Exam, Exam.id == ExamScore.exam_id)
            .where(
                ExamScore.student_id == student_id,
                Exam.is_active.is_(True),
                Exam.exam_date >= period_start,
                Exam.exam_date <= period_end,
            )
            .order_by(Exam.exam_date, Exam.id)
        )
        return [
            ExamScoreEntry(
                student_id=r[0],
                exam_id=r[1],
                marks_obtained=float(r[2]),
                total_marks=float(r[3]),
            )
            for r in result.all()
        ]

    def list_attendance(self, student_id: int, period_start: date, period_end: date) -> list[AttendanceEntry]:
        """Get a student's attendance on working days within the period."""
        working_dates = CalendarService(self.db, self.settings).working_dates_query(period_start, period_end)
        result = self.db.execute(
            select(AttendanceRecord.student_id, AttendanceRecord.attendance_date, AttendanceRecord.status)
            .where(
                AttendanceRecord.student_id == student_id,
                AttendanceRecord.attendance_date >= period_start,
                AttendanceRecord.attendance_date <= period_end,
                AttendanceRecord.attendance_date.in_(working_dates),
            )
            .order_by(AttendanceRecord.attendance_date)
        )
        return [AttendanceEntry(student_id=r[0], attendance_date=r[1], status=r[2]) for r in result.all()]

    def count_working_days(self, year: int, month: int) -> int:
        """Count working days, creating the default calendar for an empty month."""
        return CalendarService(self.db, self.settings).ensure_default_month(year, month).working_days

    def get_bonus(self, student_id: int, batch_id: int, year: int, month: int) -> float:
        """Get the teacher-entered bonus, 0 when none was entered."""
        result = self.db.execute(
            select(MonthlyBonus.bonus_percent).where(
                MonthlyBonus.student_id == student_id,
                MonthlyBonus.batch_id == batch_id,
                MonthlyBonus.year == year,
                MonthlyBonus.month == month,
            )
        )
        bonus = result.scalar_one_or_none()
        return float(bonus) if bonus is not None else 0.0

    def replace_monthly_results(
        self,
        batch_id: int,
        year: int,
        month: int,
        results: Sequence[MonthlyResultData],
    ) -> None:
        """Replace every stored result of the cohort with the given set."""
        self.db.execute(
            delete(MonthlyResult).where(
                MonthlyResult.batch_id == batch_id,
                MonthlyResult.year == year,
                MonthlyResult.month == month,
            )
        )
        for data in results:
            self.db.add(MonthlyResult(
                student_id=data.student_id,
                batch_id=data.batch_id,
                year=data.year,
                month=data.month,
                class_level=data.class_level,
                exam_component_percent=data.exam_component_percent,
                total_exams=data.total_exams,
                present_days=data.present_days,
                excused_days=data.excused_days,
                absent_days=data.absent_days,
                working_days=data.working_days,
                attendance_component_percent=data.attendance_component_percent,
                bonus_percent=data.bonus_percent,
                final_percent=data.final_percent,
                gpa=data.gpa,
                letter_grade=data.letter_grade,
                grade_description=data.grade_description,
                class_rank=data.class_rank,
                total_students=data.total_students,
            ))
        self.db.flush()
        logger.info(f"Stored {len(results)} monthly results for batch {batch_id}, {month}/{year}")

