"""Database models package."""

from coachdesk.models.attendance import AttendanceRecord, AttendanceStatus
from coachdesk.models.batch import Batch, BatchStatus
from coachdesk.models.calendar import AcademicCalendarDay
from coachdesk.models.exam import Exam, ExamScore
from coachdesk.models.monthly_result import MonthlyBonus, MonthlyResult, TopPerformer
from coachdesk.models.student import Student

__all__ = [
    "AcademicCalendarDay",
    "AttendanceRecord",
    "AttendanceStatus",
    "Batch",
    "BatchStatus",
    "Exam",
    "ExamScore",
    "MonthlyBonus",
    "MonthlyResult",
    "Student",
    "TopPerformer",
]
