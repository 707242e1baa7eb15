"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coachdesk.api.v1.router import api_router
from coachdesk.core.config import Settings, get_settings
from coachdesk.core.context import AppContext
from coachdesk.core.database import Base
from coachdesk.core.exceptions import AppException, InternalError
from coachdesk.core.scheduler import MonthlyResultScheduler
from coachdesk.middleware.logging import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Suppress noisy SQLAlchemy and scheduler logs
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    context: AppContext = app.state.context
    settings = context.settings
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    Base.metadata.create_all(bind=context.engine)
    if settings.SCHEDULER_ENABLED:
        context.scheduler.start()

    yield

    logger.info("Shutting down application")
    context.scheduler.stop()
    context.dispose()


def create_application(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
Coaching center monthly result backend.

## Features

- **Monthly Results**: Weighted exam, attendance and bonus scores graded on a 5.0 GPA scale
- **Class Ranks**: Ranked within each batch per month
- **Automation**: Previous month processed on the first day of each month
- **Academic Calendar**: Working days drive attendance percentages

## Error Handling

All errors follow a standard format:
```json
{
  "success": false,
  "error": {
    "code": "ERROR_CODE",
    "message": "Human readable message",
    "details": {}
  }
}
```
        """,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    context = AppContext.from_settings(settings)
    context.scheduler = MonthlyResultScheduler(context)
    app.state.context = context

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": {"errors": jsonable_errors(exc)},
                },
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        error = InternalError("An internal server error occurred")
        return JSONResponse(
            status_code=error.status_code,
            content=error.detail,
        )

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "scheduler_running": context.scheduler.running,
        }

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-serializable context dropped."""
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "coachdesk.main:create_application",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=get_settings().DEBUG,
    )
