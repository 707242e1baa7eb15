"""Monthly result schemas."""

from pydantic import Field

from coachdesk.schemas.common import BaseSchema


class GenerateResultsRequest(BaseSchema):
    """Generate the monthly results of one batch."""

    batch_id: int
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)


class ProcessMonthRequest(BaseSchema):
    """Process every active batch for a month (current month by default)."""

    year: int | None = Field(None, ge=2000, le=2100)
    month: int | None = Field(None, ge=1, le=12)


class MonthlyResultResponse(BaseSchema):
    """Monthly result of one student."""

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
    class_rank: int
    total_students: int


class CohortResultResponse(BaseSchema):
    """Results of one (batch, year, month) cohort."""

    batch_id: int
    year: int
    month: int
    status: str
    working_days: int
    total_students: int
    results: list[MonthlyResultResponse]


class ProcessingStats(BaseSchema):
    """Outcome of processing a whole month."""

    year: int
    month: int
    total_batches: int = 0
    processed_batches: int = 0
    empty_batches: int = 0
    failed_batches: int = 0
    failed_batch_ids: list[int] = []
    total_students: int = 0
    processing_time_ms: float = 0.0


class MonthlyResultStats(BaseSchema):
    """Summary statistics of stored results for a month."""

    year: int
    month: int
    total_results: int
    total_batches: int
    average_final_percent: float
    highest_final_percent: float
    lowest_final_percent: float
    grade_distribution: dict[str, int]


class ProcessedCheckResponse(BaseSchema):
    """Whether a month has stored results."""

    year: int
    month: int
    is_processed: bool
    message: str


class AvailableMonth(BaseSchema):
    """A recent month and whether it can be processed."""

    year: int
    month: int
    month_name: str
    is_processed: bool
    can_process: bool


class TopPerformerResponse(BaseSchema):
    """Cached top performer entry."""

    student_id: int
    student_name: str
    year: int
    month: int
    class_level: str
    rank: int
    final_percent: float
