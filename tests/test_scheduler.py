"""Tests for the monthly result scheduler."""

from datetime import date, datetime, timezone

import pytest

from coachdesk.core.exceptions import ResultsBusyError
from coachdesk.core.scheduler import MonthlyResultScheduler, previous_month
from coachdesk.services.monthly_result import MonthlyResultService

from conftest import freeze_clock, seed_march_cohort

# 00:30 on 1 April 2025 in Asia/Dhaka, still 31 March on a UTC host
FIRST_OF_APRIL_DHAKA = datetime(2025, 3, 31, 18, 30, tzinfo=timezone.utc)


@pytest.fixture
def cohort(db, settings):
    cohort = seed_march_cohort(db, settings)
    db.commit()
    return cohort


@pytest.fixture
def result_scheduler(context):
    result_scheduler = MonthlyResultScheduler(context)
    yield result_scheduler
    result_scheduler.stop()


def test_previous_month():
    assert previous_month(date(2025, 4, 1)) == (2025, 3)
    assert previous_month(date(2025, 1, 1)) == (2024, 12)


def test_trigger_processes_requested_month(result_scheduler, cohort):
    stats = result_scheduler.trigger(2025, 3)

    assert stats.processed_batches == 1
    assert stats.total_students == 2
    status = result_scheduler.status()
    assert status["last_processed"] == {"year": 2025, "month": 3}
    assert status["is_processing"] is False
    assert status["active_runs"] == []
    assert status["last_stats"]["total_students"] == 2


def test_trigger_rejects_overlapping_run(result_scheduler):
    result_scheduler.is_processing = True
    with pytest.raises(ResultsBusyError):
        result_scheduler.trigger(2025, 3)


def test_scheduled_job_processes_previous_month(result_scheduler, context, db, cohort, monkeypatch):
    freeze_clock(monkeypatch, FIRST_OF_APRIL_DHAKA)

    result_scheduler.process_previous_month_job()

    assert result_scheduler.last_processed == (2025, 3)
    assert MonthlyResultService(db, context).is_month_processed(2025, 3)


def test_scheduled_job_skips_processed_month(result_scheduler, cohort, monkeypatch):
    result_scheduler.trigger(2025, 3)
    result_scheduler.last_stats = None
    freeze_clock(monkeypatch, FIRST_OF_APRIL_DHAKA)

    result_scheduler.process_previous_month_job()

    assert result_scheduler.last_stats is None


def test_start_and_stop(result_scheduler):
    result_scheduler.start()
    status = result_scheduler.status()
    assert status["running"] is True
    assert status["next_run_time"] is not None

    result_scheduler.stop()
    assert result_scheduler.status()["running"] is False


def test_scheduled_job_at_fire_time_on_utc_host(result_scheduler, cohort, monkeypatch):
    trigger = result_scheduler.monthly_trigger()
    fire_time = trigger.get_next_fire_time(None, datetime(2025, 3, 20, tzinfo=timezone.utc))
    assert fire_time == FIRST_OF_APRIL_DHAKA
    assert fire_time.astimezone(timezone.utc).date() == date(2025, 3, 31)
    freeze_clock(monkeypatch, fire_time)

    result_scheduler.process_previous_month_job()

    assert result_scheduler.last_processed == (2025, 3)


def test_trigger_defaults_to_current_month_in_scheduler_timezone(result_scheduler, monkeypatch):
    freeze_clock(monkeypatch, FIRST_OF_APRIL_DHAKA)

    stats = result_scheduler.trigger()

    assert (stats.year, stats.month) == (2025, 4)
