"""Tests for the monthly result aggregator over an in-memory store."""

import logging

import pytest

from coachdesk.core.exceptions import ValidationError
from coachdesk.models.attendance import AttendanceStatus
from coachdesk.services.aggregator import (
    COHORT_COMPLETED,
    COHORT_EMPTY_ROSTER,
    MonthlyResultAggregator,
    weighted_final_percent,
)

BATCH = 1
YEAR, MONTH = 2025, 3


def seed_two_students(store):
    store.add_student(BATCH, 1, "Ayesha")
    store.add_student(BATCH, 2, "Rafi")
    store.add_score(1, exam_id=10, marks=40, total=50)
    store.add_score(1, exam_id=11, marks=80, total=100)
    store.add_attendance(1, AttendanceStatus.PRESENT, 20)
    store.add_attendance(2, AttendanceStatus.PRESENT, 10)
    store.add_attendance(2, AttendanceStatus.ABSENT, 10)


def by_student(outcome):
    return {r.student_id: r for r in outcome.results}


def test_weighted_final_percent():
    assert weighted_final_percent(80, 100, 0) == 76.0
    assert weighted_final_percent(100, 100, 100) == 100.0
    assert weighted_final_percent(0, 0, 0) == 0.0


def test_two_student_cohort(store):
    seed_two_students(store)

    outcome = MonthlyResultAggregator(store).run(BATCH, YEAR, MONTH)
    results = by_student(outcome)

    assert outcome.status == COHORT_COMPLETED
    assert outcome.total_students == 2

    a = results[1]
    assert a.exam_component_percent == 80.0
    assert a.total_exams == 2
    assert a.attendance_component_percent == 100.0
    assert a.bonus_percent == 0.0
    assert a.final_percent == 76.0
    assert a.gpa == 3.5
    assert a.letter_grade == "B+"
    assert a.class_rank == 1

    b = results[2]
    assert b.exam_component_percent == 0.0
    assert b.total_exams == 0
    assert b.attendance_component_percent == 50.0
    assert b.absent_days == 10
    assert b.final_percent == 10.0
    assert b.gpa == 0.0
    assert b.letter_grade == "F"
    assert b.grade_description == "অকৃতকার্য"
    assert b.class_rank == 2
    assert b.total_students == 2


def test_results_are_ordered_by_rank(store):
    seed_two_students(store)
    outcome = MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH)
    assert [r.student_id for r in outcome.results] == [1, 2]


def test_compute_does_not_write(store):
    seed_two_students(store)
    MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH)
    assert store.replace_calls == 0


def test_rerun_produces_identical_results(store):
    seed_two_students(store)
    aggregator = MonthlyResultAggregator(store)

    aggregator.run(BATCH, YEAR, MONTH)
    first = list(store.saved[(BATCH, YEAR, MONTH)])
    aggregator.run(BATCH, YEAR, MONTH)

    assert store.saved[(BATCH, YEAR, MONTH)] == first
    assert store.replace_calls == 2


def test_roster_addition_changes_existing_ranks(store):
    seed_two_students(store)
    aggregator = MonthlyResultAggregator(store)
    aggregator.run(BATCH, YEAR, MONTH)
    assert by_student(aggregator.compute(BATCH, YEAR, MONTH))[1].class_rank == 1

    store.add_student(BATCH, 3, "Nadia")
    store.add_score(3, exam_id=10, marks=50, total=50)
    store.add_attendance(3, AttendanceStatus.PRESENT, 20)
    aggregator.run(BATCH, YEAR, MONTH)

    results = {r.student_id: r for r in store.saved[(BATCH, YEAR, MONTH)]}
    assert results[3].class_rank == 1
    assert results[1].class_rank == 2
    assert results[2].class_rank == 3
    assert all(r.total_students == 3 for r in results.values())


def test_empty_roster_is_reported_not_raised(store, caplog):
    with caplog.at_level(logging.WARNING):
        outcome = MonthlyResultAggregator(store).run(BATCH, YEAR, MONTH)

    assert outcome.status == COHORT_EMPTY_ROSTER
    assert outcome.results == []
    assert store.saved[(BATCH, YEAR, MONTH)] == []
    assert "No students found" in caplog.text


def test_student_without_any_data_gets_zeros(store):
    store.add_student(BATCH, 1, "Ayesha")
    outcome = MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH)
    result = outcome.results[0]
    assert result.final_percent == 0.0
    assert result.letter_grade == "F"
    assert result.class_rank == 1


def test_zero_working_days_gives_zero_attendance(store):
    store.working_days = 0
    store.add_student(BATCH, 1, "Ayesha")
    store.add_attendance(1, AttendanceStatus.PRESENT, 3)
    result = MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH).results[0]
    assert result.attendance_component_percent == 0.0
    assert result.present_days == 3


def test_attendance_above_working_days_is_capped(store):
    store.working_days = 2
    store.add_student(BATCH, 1, "Ayesha")
    store.add_attendance(1, AttendanceStatus.PRESENT, 3)
    result = MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH).results[0]
    assert result.attendance_component_percent == 100.0


def test_malformed_exam_rows_are_skipped(store, caplog):
    store.add_student(BATCH, 1, "Ayesha")
    store.add_score(1, exam_id=10, marks=90, total=100)
    store.add_score(1, exam_id=11, marks=10, total=0)
    store.add_score(1, exam_id=12, marks=120, total=100)

    with caplog.at_level(logging.WARNING):
        result = MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH).results[0]

    assert result.exam_component_percent == 90.0
    assert result.total_exams == 1
    assert "Skipping exam 11" in caplog.text
    assert "Skipping exam 12" in caplog.text


def test_manual_bonus_is_weighted(store):
    store.add_student(BATCH, 1, "Ayesha")
    store.bonuses[(1, BATCH, YEAR, MONTH)] = 80.0
    result = MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH).results[0]
    assert result.bonus_percent == 80.0
    assert result.final_percent == 8.0


def test_out_of_range_bonus_is_clamped(store):
    store.add_student(BATCH, 1, "Ayesha")
    store.bonuses[(1, BATCH, YEAR, MONTH)] = 250.0
    result = MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH).results[0]
    assert result.bonus_percent == 100.0


def test_attendance_bonus_counts_excused_days(store):
    store.add_student(BATCH, 1, "Ayesha")
    store.add_attendance(1, AttendanceStatus.PRESENT, 10)
    store.add_attendance(1, AttendanceStatus.EXCUSED, 5)
    store.bonuses[(1, BATCH, YEAR, MONTH)] = 100.0

    result = MonthlyResultAggregator(store, bonus_policy="attendance").compute(
        BATCH, YEAR, MONTH
    ).results[0]

    assert result.attendance_component_percent == 50.0
    assert result.bonus_percent == 75.0
    assert result.final_percent == 17.5


def test_tied_students_share_rank_by_default(store):
    for student_id in (1, 2, 3):
        store.add_student(BATCH, student_id, f"Student {student_id}")
        store.add_attendance(student_id, AttendanceStatus.PRESENT, 20)
    store.add_score(1, exam_id=10, marks=82, total=100)
    store.add_score(2, exam_id=10, marks=84, total=100)
    store.add_score(3, exam_id=10, marks=60, total=100)

    ranks = {
        r.student_id: r.class_rank
        for r in MonthlyResultAggregator(store).compute(BATCH, YEAR, MONTH).results
    }
    # 77.4 and 78.8 both map to GPA 3.5
    assert ranks == {1: 1, 2: 1, 3: 3}

    ordinal = {
        r.student_id: r.class_rank
        for r in MonthlyResultAggregator(store, rank_policy="ordinal").compute(BATCH, YEAR, MONTH).results
    }
    assert ordinal == {2: 1, 1: 2, 3: 3}


def test_english_descriptions(store):
    store.add_student(BATCH, 1, "Ayesha")
    result = MonthlyResultAggregator(store, locale="en").compute(BATCH, YEAR, MONTH).results[0]
    assert result.grade_description == "Fail"


@pytest.mark.parametrize("year, month", [(2025, 0), (2025, 13), (1999, 5)])
def test_invalid_period_is_rejected(store, year, month):
    with pytest.raises(ValidationError):
        MonthlyResultAggregator(store).compute(BATCH, year, month)
