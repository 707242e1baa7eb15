"""Academic calendar model."""

from datetime import date

from sqlalchemy import Boolean, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from coachdesk.core.database import Base
from coachdesk.models.base import IDMixin, TimestampMixin


class AcademicCalendarDay(Base, IDMixin, TimestampMixin):
    """One calendar date and whether classes are held on it."""

    __tablename__ = "academic_calendar_days"

    calendar_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True, index=True)
    is_working_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    day_type: Mapped[str] = mapped_column(String(50), nullable=False, default="regular")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<AcademicCalendarDay(date={self.calendar_date}, working={self.is_working_day})>"
