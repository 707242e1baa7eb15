"""Monthly bonus service."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from coachdesk.core.exceptions import ValidationError
from coachdesk.models.monthly_result import MonthlyBonus
from coachdesk.models.student import Student
from coachdesk.schemas.bonus import BonusResponse, BonusUpsert
from coachdesk.services.calendar import validate_period

logger = logging.getLogger(__name__)


class BonusService:
    """Teacher-granted monthly bonus service."""

    def __init__(self, db: Session):
        self.db = db

    def set_bonus(self, request: BonusUpsert) -> BonusResponse:
        """Create or replace a student's bonus for a month."""
        validate_period(request.year, request.month)
        student = self.db.get(Student, request.student_id)
        if not student or student.batch_id != request.batch_id:
            raise ValidationError(
                f"Student {request.student_id} is not in batch {request.batch_id}"
            )

        bonus = self.db.execute(
            select(MonthlyBonus).where(
                MonthlyBonus.student_id == request.student_id,
                MonthlyBonus.batch_id == request.batch_id,
                MonthlyBonus.year == request.year,
                MonthlyBonus.month == request.month,
            )
        ).scalar_one_or_none()

        if bonus:
            bonus.bonus_percent = request.bonus_percent
            bonus.note = request.note
        else:
            bonus = MonthlyBonus(
                student_id=request.student_id,
                batch_id=request.batch_id,
                year=request.year,
                month=request.month,
                bonus_percent=request.bonus_percent,
                note=request.note,
            )
            self.db.add(bonus)

        self.db.flush()
        logger.info(
            f"Bonus {request.bonus_percent} set for student {request.student_id}, "
            f"{request.month}/{request.year}"
        )
        return BonusResponse.model_validate(bonus)

    def list_bonuses(self, batch_id: int, year: int, month: int) -> list[BonusResponse]:
        """List the bonuses granted in a batch for a month."""
        validate_period(year, month)
        bonuses = self.db.execute(
            select(MonthlyBonus)
            .where(
                MonthlyBonus.batch_id == batch_id,
                MonthlyBonus.year == year,
                MonthlyBonus.month == month,
            )
            .order_by(MonthlyBonus.student_id)
        ).scalars().all()
        return [BonusResponse.model_validate(b) for b in bonuses]
