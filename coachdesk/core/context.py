"""Application context shared by request handlers and scheduled jobs."""

from typing import TYPE_CHECKING

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from coachdesk.core.config import Settings
from coachdesk.core.database import create_db_engine, create_session_factory
from coachdesk.core.locks import CohortLockRegistry

if TYPE_CHECKING:
    from coachdesk.core.scheduler import MonthlyResultScheduler


class AppContext:
    """Runtime state built once at startup and passed by reference."""

    def __init__(
        self,
        settings: Settings,
        engine: Engine,
        session_factory: sessionmaker[Session],
        locks: CohortLockRegistry | None = None,
    ):
        self.settings = settings
        self.engine = engine
        self.session_factory = session_factory
        self.locks = locks or CohortLockRegistry()
        self.scheduler: "MonthlyResultScheduler | None" = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        """Build the context for the configured database."""
        engine = create_db_engine(settings)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=create_session_factory(engine),
        )

    def dispose(self) -> None:
        """Release pooled database connections."""
        self.engine.dispose()
