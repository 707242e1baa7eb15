"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from coachdesk.api.v1.endpoints import (
    attendance,
    automation,
    batches,
    bonuses,
    calendar,
    exams,
    monthly_results,
)

api_router = APIRouter()

# Roster
api_router.include_router(
    batches.router,
    prefix="/batches",
    tags=["Batches"],
)
api_router.include_router(
    batches.students_router,
    prefix="/students",
    tags=["Students"],
)

# Monthly inputs
api_router.include_router(
    exams.router,
    prefix="/exams",
    tags=["Exams"],
)
api_router.include_router(
    attendance.router,
    prefix="/attendance",
    tags=["Attendance"],
)
api_router.include_router(
    calendar.router,
    prefix="/calendar",
    tags=["Academic Calendar"],
)
api_router.include_router(
    bonuses.router,
    prefix="/bonuses",
    tags=["Bonuses"],
)

# Results
api_router.include_router(
    monthly_results.router,
    prefix="/monthly-results",
    tags=["Monthly Results"],
)
api_router.include_router(
    automation.router,
    prefix="/automation",
    tags=["Automation"],
)
