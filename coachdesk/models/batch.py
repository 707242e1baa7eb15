"""Batch model."""

import enum

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coachdesk.core.database import Base
from coachdesk.models.base import IDMixin, TimestampMixin


class BatchStatus(str, enum.Enum):
    """Batch lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    COMPLETED = "completed"


class Batch(Base, IDMixin, TimestampMixin):
    """A group of students taught together."""

    __tablename__ = "batches"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    class_level: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[BatchStatus] = mapped_column(
        Enum(BatchStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BatchStatus.ACTIVE,
    )

    students: Mapped[list["Student"]] = relationship(
        "Student",
        back_populates="batch",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Batch(id={self.id}, name={self.name}, class={self.class_level})>"
