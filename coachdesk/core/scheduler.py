"""APScheduler configuration for automatic monthly result processing."""

import logging
import threading
from datetime import date, datetime
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from coachdesk.core.context import AppContext
from coachdesk.core.exceptions import ResultsBusyError
from coachdesk.core.locks import month_key
from coachdesk.schemas.monthly_result import ProcessingStats
from coachdesk.services.calendar import local_today
from coachdesk.services.monthly_result import MonthlyResultService

logger = logging.getLogger(__name__)

JOB_ID = "process_monthly_results"


def previous_month(today: date) -> tuple[int, int]:
    """Get (year, month) of the month before today."""
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


class MonthlyResultScheduler:
    """Runs monthly result processing on the first day of each month."""

    def __init__(self, context: AppContext):
        self.context = context
        self.settings = context.settings
        self.scheduler = BackgroundScheduler(
            timezone=self.settings.SCHEDULER_TIMEZONE,
            job_defaults={
                "coalesce": True,  # Combine missed runs
                "max_instances": 1,  # Only one instance of each job at a time
                "misfire_grace_time": 3600,  # Allow 1 hour grace period for missed jobs
            },
        )
        self._guard = threading.Lock()
        self.is_processing = False
        self.last_processed: tuple[int, int] | None = None
        self.last_stats: ProcessingStats | None = None

    def monthly_trigger(self) -> CronTrigger:
        """Cron trigger for day 1 at the configured time in the scheduler timezone."""
        return CronTrigger(
            day=1,
            hour=self.settings.SCHEDULER_RUN_HOUR,
            minute=self.settings.SCHEDULER_RUN_MINUTE,
            timezone=self.settings.SCHEDULER_TIMEZONE,
        )

    def start(self) -> None:
        """Register the monthly job and start the scheduler."""
        if self.scheduler.running:
            return
        self.scheduler.add_job(
            self.process_previous_month_job,
            trigger=self.monthly_trigger(),
            id=JOB_ID,
            name="Process previous month's results",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(
            f"Monthly result scheduler started ({self.settings.SCHEDULER_TIMEZONE}, "
            f"day 1 at {self.settings.SCHEDULER_RUN_HOUR:02d}:{self.settings.SCHEDULER_RUN_MINUTE:02d})"
        )

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Monthly result scheduler stopped")

    def today(self) -> date:
        """Get today's date in the timezone the cron trigger fires in."""
        return local_today(self.settings.SCHEDULER_TIMEZONE)

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def status(self) -> dict[str, Any]:
        """Report scheduler state and the last processed month."""
        job = self.scheduler.get_job(JOB_ID) if self.scheduler.running else None
        next_run: datetime | None = job.next_run_time if job else None
        last = None
        if self.last_processed:
            last = {"year": self.last_processed[0], "month": self.last_processed[1]}
        return {
            "running": self.scheduler.running,
            "is_processing": self.is_processing,
            "active_runs": self.context.locks.held_keys(),
            "last_processed": last,
            "last_stats": self.last_stats.model_dump() if self.last_stats else None,
            "next_run_time": next_run.isoformat() if next_run else None,
        }

    def process_previous_month_job(self) -> None:
        """
        Job to process last month's results.
        Skips months that already have stored results.
        """
        year, month = previous_month(self.today())
        logger.info(f"Starting automatic result processing for {month}/{year}")

        db = self.context.session_factory()
        try:
            if MonthlyResultService(db, self.context).is_month_processed(year, month):
                logger.info(f"Results for {month}/{year} already processed, skipping")
                return
        finally:
            db.close()

        try:
            self._run(year, month)
        except Exception as e:
            logger.exception(f"Error processing monthly results for {month}/{year}: {e}")

    def trigger(self, year: int | None = None, month: int | None = None) -> ProcessingStats:
        """
        Manually process a month (current month by default).
        Raises ResultsBusyError while another run is in progress.
        """
        today = self.today()
        year = year or today.year
        month = month or today.month
        logger.info(f"Manual result processing triggered for {month}/{year}")
        return self._run(year, month)

    def _run(self, year: int, month: int) -> ProcessingStats:
        with self._guard:
            if self.is_processing:
                raise ResultsBusyError(month_key(year, month))
            self.is_processing = True

        db = self.context.session_factory()
        try:
            stats = MonthlyResultService(db, self.context).process_month(year, month)
            self.last_processed = (year, month)
            self.last_stats = stats
            return stats
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
            self.is_processing = False
