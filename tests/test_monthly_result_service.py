"""Tests for monthly result generation, processing and reporting."""

from datetime import date
from io import BytesIO

import pytest
from openpyxl import load_workbook
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from coachdesk.core.exceptions import NotFoundError, ResultsBusyError
from coachdesk.core.locks import cohort_key, month_key
from coachdesk.models.attendance import AttendanceRecord, AttendanceStatus
from coachdesk.models.batch import Batch, BatchStatus
from coachdesk.models.exam import Exam, ExamScore
from coachdesk.models.monthly_result import MonthlyResult
from coachdesk.models.student import Student
from coachdesk.schemas.bonus import BonusUpsert
from coachdesk.services.bonus import BonusService
from coachdesk.services.monthly_result import MonthlyResultService
from coachdesk.services.result_store import SqlResultStore

from conftest import seed_march_cohort


@pytest.fixture
def cohort(db, settings):
    return seed_march_cohort(db, settings)


@pytest.fixture
def service(db, context):
    return MonthlyResultService(db, context)


def ranks(results):
    return {r.student_name: r.class_rank for r in results}


def test_generate_for_batch(service, cohort):
    outcome = service.generate_for_batch(cohort["batch"].id, 2025, 3)

    assert outcome.status == "completed"
    assert outcome.working_days == 2
    assert outcome.total_students == 2

    ayesha, rafi = outcome.results
    assert ayesha.student_name == "Ayesha"
    assert ayesha.exam_component_percent == 80.0
    assert ayesha.attendance_component_percent == 100.0
    assert ayesha.final_percent == 76.0
    assert ayesha.gpa == 3.5
    assert ayesha.letter_grade == "B+"
    assert ayesha.class_rank == 1

    # The holiday on the 5th is ignored
    assert rafi.present_days == 1
    assert rafi.absent_days == 1
    assert rafi.attendance_component_percent == 50.0
    assert rafi.final_percent == 10.0
    assert rafi.letter_grade == "F"
    assert rafi.class_rank == 2


def test_generated_results_are_stored(service, cohort):
    service.generate_for_batch(cohort["batch"].id, 2025, 3)
    stored = service.list_results(cohort["batch"].id, 2025, 3)
    assert ranks(stored) == {"Ayesha": 1, "Rafi": 2}
    assert all(r.total_students == 2 for r in stored)


ROW_IDENTITY_COLUMNS = {"id", "created_at", "updated_at", "generated_at"}


def stored_rows(db, batch_id):
    rows = db.execute(
        select(MonthlyResult)
        .where(MonthlyResult.batch_id == batch_id)
        .order_by(MonthlyResult.student_id)
    ).scalars().all()
    columns = [c.key for c in MonthlyResult.__table__.columns if c.key not in ROW_IDENTITY_COLUMNS]
    return [{name: getattr(row, name) for name in columns} for row in rows]


def test_regenerating_overwrites_with_identical_rows(service, db, cohort):
    batch_id = cohort["batch"].id
    service.generate_for_batch(batch_id, 2025, 3)
    first = stored_rows(db, batch_id)

    service.generate_for_batch(batch_id, 2025, 3)
    db.expire_all()
    second = stored_rows(db, batch_id)

    assert len(second) == 2
    assert second == first


def test_regenerating_after_enrollment_updates_ranks(service, db, cohort):
    batch = cohort["batch"]
    service.generate_for_batch(batch.id, 2025, 3)

    nadia = Student(batch_id=batch.id, student_name="Nadia", class_level="9")
    db.add(nadia)
    db.flush()
    exam = db.execute(select(Exam).where(Exam.title == "Weekly 2")).scalar_one()
    db.add(ExamScore(exam_id=exam.id, student_id=nadia.id, marks_obtained=100))
    for day in (3, 4):
        db.add(AttendanceRecord(
            student_id=nadia.id, batch_id=batch.id,
            attendance_date=date(2025, 3, day), status=AttendanceStatus.PRESENT,
        ))
    db.flush()

    outcome = service.generate_for_batch(batch.id, 2025, 3)

    assert ranks(outcome.results) == {"Nadia": 1, "Ayesha": 2, "Rafi": 3}
    assert ranks(service.list_results(batch.id, 2025, 3)) == {"Nadia": 1, "Ayesha": 2, "Rafi": 3}


def test_inactive_students_are_left_out(service, db, cohort):
    cohort["rafi"].is_active = False
    db.flush()
    outcome = service.generate_for_batch(cohort["batch"].id, 2025, 3)
    assert [r.student_name for r in outcome.results] == ["Ayesha"]


def test_bonus_is_applied(service, db, cohort):
    BonusService(db).set_bonus(BonusUpsert(
        student_id=cohort["ayesha"].id,
        batch_id=cohort["batch"].id,
        year=2025,
        month=3,
        bonus_percent=50,
    ))
    ayesha = service.generate_for_batch(cohort["batch"].id, 2025, 3).results[0]
    assert ayesha.bonus_percent == 50.0
    assert ayesha.final_percent == 81.0
    assert ayesha.letter_grade == "A-"


def test_unknown_batch(service):
    with pytest.raises(NotFoundError):
        service.generate_for_batch(999, 2025, 3)


def test_generate_rejects_cohort_already_running(service, context, cohort):
    batch_id = cohort["batch"].id
    with context.locks.hold(cohort_key(batch_id, 2025, 3)):
        with pytest.raises(ResultsBusyError):
            service.generate_for_batch(batch_id, 2025, 3)


def test_generate_rejected_while_month_is_being_processed(service, context, cohort):
    batch_id = cohort["batch"].id
    with context.locks.hold(month_key(2025, 3)):
        with pytest.raises(ResultsBusyError):
            service.generate_for_batch(batch_id, 2025, 3)
    assert service.list_results(batch_id, 2025, 3) == []


def test_generate_refreshes_top_performers_under_month_lock(service, context, cohort, monkeypatch):
    held = []
    original = MonthlyResultService._refresh_top_performers

    def refresh(self, year, month):
        held.append(context.locks.is_held(month_key(year, month)))
        return original(self, year, month)

    monkeypatch.setattr(MonthlyResultService, "_refresh_top_performers", refresh)

    service.generate_for_batch(cohort["batch"].id, 2025, 3)

    assert held == [True]
    assert not context.locks.is_held(month_key(2025, 3))


def test_empty_batch_stores_nothing(service, db):
    batch = Batch(name="Chemistry Evening", subject="Chemistry", class_level="10")
    db.add(batch)
    db.flush()
    outcome = service.generate_for_batch(batch.id, 2025, 3)
    assert outcome.status == "empty_roster"
    assert outcome.results == []


def test_process_month(service, db, cohort):
    db.add(Batch(name="Empty", subject="Math", class_level="9"))
    db.add(Batch(name="Old", subject="Math", class_level="9", status=BatchStatus.COMPLETED))
    db.flush()

    stats = service.process_month(2025, 3)

    assert stats.total_batches == 2
    assert stats.processed_batches == 1
    assert stats.empty_batches == 1
    assert stats.failed_batches == 0
    assert stats.total_students == 2
    assert service.is_month_processed(2025, 3)
    assert not service.is_month_processed(2025, 4)


def test_process_month_continues_after_batch_failure(service, db, cohort, monkeypatch):
    healthy = Batch(name="Biology", subject="Biology", class_level="10")
    db.add(healthy)
    db.flush()
    db.add(Student(batch_id=healthy.id, student_name="Tanvir", class_level="10"))
    db.flush()

    failing_id = cohort["batch"].id
    original = SqlResultStore.list_students

    def list_students(self, batch_id):
        if batch_id == failing_id:
            raise OperationalError("SELECT students", {}, Exception("connection lost"))
        return original(self, batch_id)

    monkeypatch.setattr(SqlResultStore, "list_students", list_students)

    stats = service.process_month(2025, 3)

    assert stats.failed_batches == 1
    assert stats.failed_batch_ids == [failing_id]
    assert stats.processed_batches == 1
    assert [r.student_name for r in service.list_results(healthy.id, 2025, 3)] == ["Tanvir"]
    assert service.list_results(failing_id, 2025, 3) == []


def test_process_month_rejects_overlapping_run(service, context):
    with context.locks.hold(month_key(2025, 3)):
        with pytest.raises(ResultsBusyError):
            service.process_month(2025, 3)


def test_top_performers(service, cohort):
    service.process_month(2025, 3)

    top = service.get_top_performers(2025, 3)
    assert [(t.rank, t.student_name, t.final_percent) for t in top] == [
        (1, "Ayesha", 76.0),
        (2, "Rafi", 10.0),
    ]
    assert service.get_top_performers(2025, 3, class_level="10") == []


def test_top_performers_are_limited_per_class(db, context, cohort):
    context.settings.TOP_PERFORMERS_LIMIT = 1
    service = MonthlyResultService(db, context)
    service.process_month(2025, 3)
    assert [t.student_name for t in service.get_top_performers(2025, 3)] == ["Ayesha"]


def test_processing_stats(service, cohort):
    assert service.get_processing_stats(2025, 3) is None

    service.generate_for_batch(cohort["batch"].id, 2025, 3)
    stats = service.get_processing_stats(2025, 3)

    assert stats.total_results == 2
    assert stats.total_batches == 1
    assert stats.average_final_percent == 43.0
    assert stats.highest_final_percent == 76.0
    assert stats.lowest_final_percent == 10.0
    assert stats.grade_distribution == {"B+": 1, "F": 1}


def test_available_months(service, cohort):
    service.generate_for_batch(cohort["batch"].id, 2025, 3)

    months = service.available_months(date(2025, 4, 15), count=3)

    assert [(m.year, m.month) for m in months] == [(2025, 4), (2025, 3), (2025, 2)]
    assert [m.can_process for m in months] == [False, True, True]
    assert [m.is_processed for m in months] == [False, True, False]
    assert months[1].month_name == "March"


def test_available_months_cross_year(service):
    months = service.available_months(date(2025, 1, 10), count=2)
    assert [(m.year, m.month) for m in months] == [(2025, 1), (2024, 12)]


def test_export_results(service, cohort):
    batch = cohort["batch"]
    service.generate_for_batch(batch.id, 2025, 3)

    content = service.export_results(batch.id, 2025, 3)
    ws = load_workbook(BytesIO(content)).active

    assert ws.title == "Monthly Results"
    assert ws.cell(row=1, column=1).value == "Physics Morning - March 2025 Results"
    assert ws.cell(row=2, column=2).value == "Student Name"
    assert ws.cell(row=3, column=1).value == 1
    assert ws.cell(row=3, column=2).value == "Ayesha"
    assert ws.cell(row=4, column=14).value == "F"
