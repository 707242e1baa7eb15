"""Monthly result aggregation for one batch cohort."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Literal

from coachdesk.models.attendance import AttendanceStatus
from coachdesk.services.calendar import month_bounds, validate_period
from coachdesk.services.grading import (
    RankPolicy,
    assign_ranks,
    describe_grade,
    gpa_from_percentage,
    grade_from_gpa,
)
from coachdesk.services.result_store import (
    AttendanceEntry,
    ExamScoreEntry,
    MonthlyResultData,
    ResultStore,
    RosterStudent,
)

logger = logging.getLogger(__name__)

BonusPolicy = Literal["manual", "attendance"]

EXAM_WEIGHT = 0.70
ATTENDANCE_WEIGHT = 0.20
BONUS_WEIGHT = 0.10

COHORT_COMPLETED = "completed"
COHORT_EMPTY_ROSTER = "empty_roster"


def clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def weighted_final_percent(exam: float, attendance: float, bonus: float) -> float:
    """Combine the three components into the final monthly percentage."""
    total = EXAM_WEIGHT * exam + ATTENDANCE_WEIGHT * attendance + BONUS_WEIGHT * bonus
    return round(clamp_percent(total), 2)


@dataclass
class CohortOutcome:
    """Outcome of one aggregation pass over a (batch, year, month) cohort."""

    batch_id: int
    year: int
    month: int
    status: str
    working_days: int = 0
    results: list[MonthlyResultData] = field(default_factory=list)

    @property
    def total_students(self) -> int:
        return len(self.results)


class MonthlyResultAggregator:
    """Computes a cohort's monthly results from a ResultStore.

    Not safe for concurrent runs on the same cohort; callers serialize
    through CohortLockRegistry.
    """

    def __init__(
        self,
        store: ResultStore,
        rank_policy: RankPolicy = "first_match",
        bonus_policy: BonusPolicy = "manual",
        locale: str = "bn",
    ):
        self.store = store
        self.rank_policy = rank_policy
        self.bonus_policy = bonus_policy
        self.locale = locale

    def compute(self, batch_id: int, year: int, month: int) -> CohortOutcome:
        """Compute every roster student's result without writing anything."""
        validate_period(year, month)
        period_start, period_end = month_bounds(year, month)

        students = self.store.list_students(batch_id)
        if not students:
            logger.warning(f"No students found in batch {batch_id} for {month}/{year}")
            return CohortOutcome(batch_id, year, month, status=COHORT_EMPTY_ROSTER)

        working_days = self.store.count_working_days(year, month)
        logger.info(
            f"Aggregating {len(students)} students of batch {batch_id} "
            f"for {month}/{year} ({working_days} working days)"
        )

        drafts = []
        for student in students:
            scores = self.store.list_exam_scores(student.student_id, period_start, period_end)
            attendance = self.store.list_attendance(student.student_id, period_start, period_end)
            drafts.append(self._compute_student(
                student, batch_id, year, month, working_days, scores, attendance
            ))

        ranks = assign_ranks(
            ((d.student_id, d.gpa, d.final_percent) for d in drafts),
            self.rank_policy,
        )
        results = [
            replace(d, class_rank=ranks[d.student_id], total_students=len(drafts))
            for d in drafts
        ]
        results.sort(key=lambda r: (r.class_rank, r.student_id))

        return CohortOutcome(
            batch_id, year, month,
            status=COHORT_COMPLETED,
            working_days=working_days,
            results=results,
        )

    def run(self, batch_id: int, year: int, month: int) -> CohortOutcome:
        """Compute the cohort and overwrite its stored results."""
        outcome = self.compute(batch_id, year, month)
        self.store.replace_monthly_results(batch_id, year, month, outcome.results)
        return outcome

    def _compute_student(
        self,
        student: RosterStudent,
        batch_id: int,
        year: int,
        month: int,
        working_days: int,
        scores: Sequence[ExamScoreEntry],
        attendance: Sequence[AttendanceEntry],
    ) -> MonthlyResultData:
        exam_percent, total_exams = self._exam_component(student.student_id, scores)

        present = sum(1 for a in attendance if a.status == AttendanceStatus.PRESENT)
        excused = sum(1 for a in attendance if a.status == AttendanceStatus.EXCUSED)
        absent = sum(1 for a in attendance if a.status == AttendanceStatus.ABSENT)
        attendance_percent = self._day_ratio(present, working_days)

        if self.bonus_policy == "attendance":
            bonus_percent = self._day_ratio(present + excused, working_days)
        else:
            bonus_percent = self._manual_bonus(student.student_id, batch_id, year, month)

        final_percent = weighted_final_percent(exam_percent, attendance_percent, bonus_percent)
        gpa = gpa_from_percentage(final_percent)
        letter = grade_from_gpa(gpa)

        return MonthlyResultData(
            student_id=student.student_id,
            student_name=student.student_name,
            batch_id=batch_id,
            year=year,
            month=month,
            class_level=student.class_level,
            exam_component_percent=exam_percent,
            total_exams=total_exams,
            present_days=present,
            excused_days=excused,
            absent_days=absent,
            working_days=working_days,
            attendance_component_percent=attendance_percent,
            bonus_percent=bonus_percent,
            final_percent=final_percent,
            gpa=gpa,
            letter_grade=letter,
            grade_description=describe_grade(letter, self.locale),
        )

    def _exam_component(self, student_id: int, scores: Sequence[ExamScoreEntry]) -> tuple[float, int]:
        """Average exam percentage; 0 when the student has no usable scores."""
        percentages = []
        for score in scores:
            if score.total_marks <= 0 or not 0 <= score.marks_obtained <= score.total_marks:
                logger.warning(
                    f"Skipping exam {score.exam_id} for student {student_id}: "
                    f"marks {score.marks_obtained}/{score.total_marks}"
                )
                continue
            percentages.append(score.marks_obtained / score.total_marks * 100)

        if not percentages:
            return 0.0, 0
        return round(sum(percentages) / len(percentages), 2), len(percentages)

    def _day_ratio(self, days: int, working_days: int) -> float:
        if working_days <= 0:
            return 0.0
        return round(clamp_percent(days / working_days * 100), 2)

    def _manual_bonus(self, student_id: int, batch_id: int, year: int, month: int) -> float:
        bonus = self.store.get_bonus(student_id, batch_id, year, month)
        if not 0 <= bonus <= 100:
            logger.warning(f"Clamping bonus {bonus} for student {student_id} into [0, 100]")
            bonus = clamp_percent(bonus)
        return round(bonus, 2)
