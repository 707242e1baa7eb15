"""Academic calendar schemas."""

from datetime import date

from pydantic import Field

from coachdesk.schemas.common import BaseSchema


class CalendarDayInput(BaseSchema):
    """Working-day flag for one day of a month."""

    day: int = Field(..., ge=1, le=31)
    is_working_day: bool
    day_type: str = Field("regular", max_length=50)  # regular, holiday, exam_day, ...
    notes: str | None = None


class CalendarUpdateRequest(BaseSchema):
    """Replace the calendar of a month.

    Days not listed fall back to the default weekday rule.
    """

    days: list[CalendarDayInput]


class CalendarDayResponse(BaseSchema):
    """Calendar day response schema."""

    calendar_date: date
    is_working_day: bool
    day_type: str
    notes: str | None


class CalendarSummary(BaseSchema):
    """Working day totals for a month."""

    year: int
    month: int
    total_days: int
    working_days: int
    holidays: int


class CalendarMonthResponse(BaseSchema):
    """Calendar of one month."""

    summary: CalendarSummary
    days: list[CalendarDayResponse]
