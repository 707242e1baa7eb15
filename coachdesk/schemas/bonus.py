"""Monthly bonus schemas."""

from pydantic import Field

from coachdesk.schemas.common import BaseSchema


class BonusUpsert(BaseSchema):
    """Set the discretionary bonus of a student for a month."""

    student_id: int
    batch_id: int
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    bonus_percent: float = Field(..., ge=0, le=100)
    note: str | None = None


class BonusResponse(BaseSchema):
    """Monthly bonus response schema."""

    student_id: int
    batch_id: int
    year: int
    month: int
    bonus_percent: float
    note: str | None
