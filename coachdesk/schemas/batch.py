"""Batch schemas."""

from pydantic import Field

from coachdesk.models.batch import BatchStatus
from coachdesk.schemas.common import BaseSchema, TimestampSchema


class BatchCreate(BaseSchema):
    """Batch creation schema."""

    name: str = Field(..., min_length=2, max_length=255)
    subject: str = Field(..., min_length=1, max_length=100)
    class_level: str = Field(..., min_length=1, max_length=20)
    status: BatchStatus = BatchStatus.ACTIVE


class BatchResponse(TimestampSchema):
    """Batch response schema."""

    id: int
    name: str
    subject: str
    class_level: str
    status: BatchStatus
