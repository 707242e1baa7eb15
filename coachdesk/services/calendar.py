"""Academic calendar service."""

import calendar
import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy import Select, delete, select
from sqlalchemy.orm import Session

from coachdesk.core.config import Settings
from coachdesk.core.exceptions import ValidationError
from coachdesk.models.calendar import AcademicCalendarDay
from coachdesk.schemas.calendar import (
    CalendarDayInput,
    CalendarDayResponse,
    CalendarMonthResponse,
    CalendarSummary,
)

logger = logging.getLogger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100


def validate_period(year: int, month: int) -> None:
    """Reject years and months no result period can have."""
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(
            f"Year must be between {MIN_YEAR} and {MAX_YEAR}",
            details={"year": year},
        )
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12", details={"month": month})


def local_today(timezone: str) -> date:
    """Get today's date in the coaching center's timezone."""
    return datetime.now(ZoneInfo(timezone)).date()


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Get the first and last date of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class CalendarService:
    """Working day management for the academic calendar."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def working_dates_query(self, period_start: date, period_end: date) -> Select:
        """Select the working dates within a period."""
        return select(AcademicCalendarDay.calendar_date).where(
            AcademicCalendarDay.is_working_day.is_(True),
            AcademicCalendarDay.calendar_date >= period_start,
            AcademicCalendarDay.calendar_date <= period_end,
        )

    def _list_days(self, year: int, month: int) -> list[AcademicCalendarDay]:
        start, end = month_bounds(year, month)
        result = self.db.execute(
            select(AcademicCalendarDay)
            .where(
                AcademicCalendarDay.calendar_date >= start,
                AcademicCalendarDay.calendar_date <= end,
            )
            .order_by(AcademicCalendarDay.calendar_date)
        )
        return list(result.scalars().all())

    def _default_day(self, day: date) -> AcademicCalendarDay:
        is_working = day.weekday() in self.settings.DEFAULT_WORKING_WEEKDAYS
        return AcademicCalendarDay(
            calendar_date=day,
            is_working_day=is_working,
            day_type="regular" if is_working else "weekend",
            notes=None if is_working else "Weekend",
        )

    def _summarize(self, year: int, month: int, days: list[AcademicCalendarDay]) -> CalendarSummary:
        working = sum(1 for d in days if d.is_working_day)
        return CalendarSummary(
            year=year,
            month=month,
            total_days=calendar.monthrange(year, month)[1],
            working_days=working,
            holidays=len(days) - working,
        )

    def get_month(self, year: int, month: int) -> CalendarMonthResponse:
        """Get the calendar of a month, creating the default one if empty."""
        validate_period(year, month)
        self.ensure_default_month(year, month)
        days = self._list_days(year, month)
        return CalendarMonthResponse(
            summary=self._summarize(year, month, days),
            days=[CalendarDayResponse.model_validate(d) for d in days],
        )

    def ensure_default_month(self, year: int, month: int) -> CalendarSummary:
        """Create default calendar rows for a month that has none."""
        days = self._list_days(year, month)
        if not days:
            _, end = month_bounds(year, month)
            days = [self._default_day(date(year, month, n)) for n in range(1, end.day + 1)]
            self.db.add_all(days)
            self.db.flush()
            logger.info(
                f"Created default calendar for {month}/{year}: "
                f"{sum(1 for d in days if d.is_working_day)} working days"
            )
        return self._summarize(year, month, days)

    def update_month(
        self,
        year: int,
        month: int,
        days: list[CalendarDayInput],
    ) -> CalendarMonthResponse:
        """Replace the calendar rows of a month."""
        validate_period(year, month)
        start, end = month_bounds(year, month)

        overrides: dict[int, CalendarDayInput] = {}
        for entry in days:
            if entry.day > end.day:
                raise ValidationError(
                    f"Day {entry.day} does not exist in {month}/{year}",
                    details={"day": entry.day},
                )
            if entry.day in overrides:
                raise ValidationError(
                    f"Day {entry.day} listed more than once",
                    details={"day": entry.day},
                )
            overrides[entry.day] = entry

        self.db.execute(
            delete(AcademicCalendarDay).where(
                AcademicCalendarDay.calendar_date >= start,
                AcademicCalendarDay.calendar_date <= end,
            )
        )

        rows = []
        for n in range(1, end.day + 1):
            entry = overrides.get(n)
            if entry is None:
                rows.append(self._default_day(date(year, month, n)))
            else:
                rows.append(AcademicCalendarDay(
                    calendar_date=date(year, month, n),
                    is_working_day=entry.is_working_day,
                    day_type=entry.day_type,
                    notes=entry.notes,
                ))
        self.db.add_all(rows)
        self.db.flush()
        logger.info(f"Calendar for {month}/{year} updated with {len(overrides)} explicit days")

        return self.get_month(year, month)
