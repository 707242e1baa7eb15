"""Student schemas."""

from pydantic import Field

from coachdesk.schemas.common import BaseSchema, TimestampSchema


class StudentBase(BaseSchema):
    """Base student schema."""

    student_name: str = Field(..., min_length=2, max_length=255)
    class_level: str = Field(..., min_length=1, max_length=20)
    phone_no: str | None = Field(None, max_length=50)


class StudentCreate(StudentBase):
    """Student creation schema."""

    batch_id: int
    is_active: bool = True


class StudentResponse(StudentBase, TimestampSchema):
    """Student response schema."""

    id: int
    batch_id: int
    is_active: bool
