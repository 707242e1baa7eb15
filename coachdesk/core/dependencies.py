"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Request

from coachdesk.core.context import AppContext
from coachdesk.core.exceptions import ConflictError
from coachdesk.core.scheduler import MonthlyResultScheduler


def get_app_context(request: Request) -> AppContext:
    """Get the application context built at startup."""
    return request.app.state.context


def get_scheduler(
    context: Annotated[AppContext, Depends(get_app_context)],
) -> MonthlyResultScheduler:
    """Get the monthly result scheduler."""
    if context.scheduler is None:
        raise ConflictError("Monthly result scheduler is not configured")
    return context.scheduler


# Type aliases for dependency injection
AppCtx = Annotated[AppContext, Depends(get_app_context)]
ResultScheduler = Annotated[MonthlyResultScheduler, Depends(get_scheduler)]
