"""Exam and score endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coachdesk.core.database import get_db
from coachdesk.schemas.exam import (
    BulkScoreCreate,
    BulkScoreResponse,
    ExamCreate,
    ExamResponse,
    ExamScoreResponse,
)
from coachdesk.services.exam import ExamService

router = APIRouter()


@router.post("", response_model=ExamResponse, status_code=201)
def create_exam(
    request: ExamCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Create an exam for a batch."""
    return ExamService(db).create_exam(request)


@router.get("", response_model=list[ExamResponse])
def list_exams(
    db: Annotated[Session, Depends(get_db)],
    batch_id: int | None = None,
):
    """List exams newest first."""
    return ExamService(db).list_exams(batch_id)


@router.put("/{exam_id}/scores", response_model=BulkScoreResponse)
def record_scores(
    exam_id: int,
    request: BulkScoreCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Create or update marks for students of the exam's batch.
    Marks above the exam total are rejected.
    """
    return ExamService(db).record_scores(exam_id, request)


@router.get("/{exam_id}/scores", response_model=list[ExamScoreResponse])
def list_scores(
    exam_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """List the scores of an exam."""
    return ExamService(db).list_scores(exam_id)
