"""Shared fixtures: an in-memory result store, a SQLite session and an API client."""

from collections.abc import Sequence
from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

from coachdesk.core.config import Settings
from coachdesk.core.context import AppContext
from coachdesk.core.database import Base
from coachdesk.main import create_application
from coachdesk.models.attendance import AttendanceRecord, AttendanceStatus
from coachdesk.models.batch import Batch
from coachdesk.models.exam import Exam, ExamScore
from coachdesk.models.student import Student
from coachdesk.schemas.calendar import CalendarDayInput
from coachdesk.services import calendar as calendar_module
from coachdesk.services.calendar import CalendarService
from coachdesk.services.result_store import (
    AttendanceEntry,
    ExamScoreEntry,
    MonthlyResultData,
    RosterStudent,
)


class InMemoryResultStore:
    """ResultStore kept in dictionaries."""

    def __init__(self, working_days: int = 20):
        self.working_days = working_days
        self.rosters: dict[int, list[RosterStudent]] = {}
        self.scores: dict[int, list[ExamScoreEntry]] = {}
        self.attendance: dict[int, list[AttendanceEntry]] = {}
        self.bonuses: dict[tuple[int, int, int, int], float] = {}
        self.saved: dict[tuple[int, int, int], list[MonthlyResultData]] = {}
        self.replace_calls = 0

    def add_student(self, batch_id: int, student_id: int, name: str, class_level: str = "9") -> None:
        self.rosters.setdefault(batch_id, []).append(RosterStudent(student_id, name, class_level))

    def add_score(self, student_id: int, exam_id: int, marks: float, total: float = 100) -> None:
        self.scores.setdefault(student_id, []).append(ExamScoreEntry(student_id, exam_id, marks, total))

    def add_attendance(self, student_id: int, status: AttendanceStatus, days: int) -> None:
        entries = self.attendance.setdefault(student_id, [])
        for _ in range(days):
            entries.append(AttendanceEntry(student_id, date(2025, 3, len(entries) + 1), status))

    def list_students(self, batch_id: int) -> Sequence[RosterStudent]:
        return list(self.rosters.get(batch_id, []))

    def list_exam_scores(self, student_id: int, period_start: date, period_end: date) -> Sequence[ExamScoreEntry]:
        return list(self.scores.get(student_id, []))

    def list_attendance(self, student_id: int, period_start: date, period_end: date) -> Sequence[AttendanceEntry]:
        return list(self.attendance.get(student_id, []))

    def count_working_days(self, year: int, month: int) -> int:
        return self.working_days

    def get_bonus(self, student_id: int, batch_id: int, year: int, month: int) -> float:
        return self.bonuses.get((student_id, batch_id, year, month), 0.0)

    def replace_monthly_results(
        self, batch_id: int, year: int, month: int, results: Sequence[MonthlyResultData]
    ) -> None:
        self.replace_calls += 1
        self.saved[(batch_id, year, month)] = list(results)


@pytest.fixture
def store() -> InMemoryResultStore:
    return InMemoryResultStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SCHEDULER_ENABLED=False,
    )


@pytest.fixture
def context(settings):
    ctx = AppContext.from_settings(settings)
    Base.metadata.create_all(bind=ctx.engine)
    yield ctx
    ctx.dispose()


@pytest.fixture
def db(context):
    session = context.session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(settings):
    app = create_application(settings)
    with TestClient(app) as test_client:
        yield test_client


def working_days_only(*days: int, last_day: int = 31) -> list[CalendarDayInput]:
    """Calendar overrides making only the given days of the month working days."""
    return [
        CalendarDayInput(day=n, is_working_day=n in days, day_type="regular" if n in days else "holiday")
        for n in range(1, last_day + 1)
    ]


def seed_march_cohort(db, settings) -> dict:
    """Batch with two students in March 2025, which has two working days.

    Ayesha scores 80% in both exams and attends both days; Rafi has no
    scores and attends one of the two days.
    """
    CalendarService(db, settings).update_month(2025, 3, working_days_only(3, 4))

    batch = Batch(name="Physics Morning", subject="Physics", class_level="9")
    db.add(batch)
    db.flush()

    ayesha = Student(batch_id=batch.id, student_name="Ayesha", class_level="9")
    rafi = Student(batch_id=batch.id, student_name="Rafi", class_level="9")
    db.add_all([ayesha, rafi])
    db.flush()

    first = Exam(batch_id=batch.id, title="Weekly 1", exam_date=date(2025, 3, 3), total_marks=50)
    second = Exam(batch_id=batch.id, title="Weekly 2", exam_date=date(2025, 3, 10), total_marks=100)
    db.add_all([first, second])
    db.flush()

    db.add_all([
        ExamScore(exam_id=first.id, student_id=ayesha.id, marks_obtained=40),
        ExamScore(exam_id=second.id, student_id=ayesha.id, marks_obtained=80),
        AttendanceRecord(
            student_id=ayesha.id, batch_id=batch.id,
            attendance_date=date(2025, 3, 3), status=AttendanceStatus.PRESENT,
        ),
        AttendanceRecord(
            student_id=ayesha.id, batch_id=batch.id,
            attendance_date=date(2025, 3, 4), status=AttendanceStatus.PRESENT,
        ),
        AttendanceRecord(
            student_id=rafi.id, batch_id=batch.id,
            attendance_date=date(2025, 3, 3), status=AttendanceStatus.PRESENT,
        ),
        AttendanceRecord(
            student_id=rafi.id, batch_id=batch.id,
            attendance_date=date(2025, 3, 4), status=AttendanceStatus.ABSENT,
        ),
        # Holiday attendance does not count
        AttendanceRecord(
            student_id=rafi.id, batch_id=batch.id,
            attendance_date=date(2025, 3, 5), status=AttendanceStatus.PRESENT,
        ),
    ])
    db.flush()
    return {"batch": batch, "ayesha": ayesha, "rafi": rafi}


def freeze_clock(monkeypatch, instant: datetime) -> None:
    """Pin "now" to an aware instant, read on a host whose local clock is UTC."""

    class FrozenDatetime(datetime):
        @classmethod
        def now(cls, tz=None):
            if tz is None:
                return instant.astimezone(timezone.utc).replace(tzinfo=None)
            return instant.astimezone(tz)

    monkeypatch.setattr(calendar_module, "datetime", FrozenDatetime)
