"""Batch and student roster endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coachdesk.core.database import get_db
from coachdesk.models.batch import BatchStatus
from coachdesk.schemas.batch import BatchCreate, BatchResponse
from coachdesk.schemas.student import StudentCreate, StudentResponse
from coachdesk.services.batch import BatchService, StudentService

router = APIRouter()
students_router = APIRouter()


@router.post("", response_model=BatchResponse, status_code=201)
def create_batch(
    request: BatchCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a new batch."""
    return BatchService(db).create_batch(request)


@router.get("", response_model=list[BatchResponse])
def list_batches(
    db: Annotated[Session, Depends(get_db)],
    status: BatchStatus | None = None,
):
    """List batches."""
    return BatchService(db).list_batches(status)


@router.get("/{batch_id}", response_model=BatchResponse)
def get_batch(
    batch_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a batch by ID."""
    return BatchService(db).get_batch(batch_id)


@students_router.post("", response_model=StudentResponse, status_code=201)
def create_student(
    request: StudentCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Enroll a student in a batch."""
    return StudentService(db).create_student(request)


@students_router.get("", response_model=list[StudentResponse])
def list_students(
    db: Annotated[Session, Depends(get_db)],
    batch_id: int | None = None,
    active_only: bool = False,
):
    """List students, optionally for one batch."""
    return StudentService(db).list_students(batch_id, active_only)
