"""Monthly bonus endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coachdesk.core.database import get_db
from coachdesk.schemas.bonus import BonusResponse, BonusUpsert
from coachdesk.services.bonus import BonusService

router = APIRouter()


@router.put("", response_model=BonusResponse)
def set_bonus(
    request: BonusUpsert,
    db: Annotated[Session, Depends(get_db)],
):
    """Set a student's discretionary bonus for a month."""
    return BonusService(db).set_bonus(request)


@router.get("", response_model=list[BonusResponse])
def list_bonuses(
    batch_id: int,
    year: int,
    month: int,
    db: Annotated[Session, Depends(get_db)],
):
    """List a batch's bonuses for a month."""
    return BonusService(db).list_bonuses(batch_id, year, month)
