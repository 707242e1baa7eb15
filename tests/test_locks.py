"""Tests for the per-cohort lock registry."""

import threading

import pytest

from coachdesk.core.exceptions import ResultsBusyError
from coachdesk.core.locks import CohortLockRegistry, cohort_key, month_key


def test_keys():
    assert cohort_key(7, 2025, 3) == "batch-7:2025-03"
    assert month_key(2025, 11) == "month:2025-11"


def test_second_holder_of_same_key_is_rejected():
    locks = CohortLockRegistry()
    key = cohort_key(1, 2025, 3)

    with locks.hold(key):
        assert locks.is_held(key)
        with pytest.raises(ResultsBusyError) as exc_info:
            with locks.hold(key):
                pass
        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "RESULTS_BUSY"

    assert not locks.is_held(key)


def test_different_cohorts_do_not_block_each_other():
    locks = CohortLockRegistry()
    with locks.hold(cohort_key(1, 2025, 3)):
        with locks.hold(cohort_key(2, 2025, 3)):
            with locks.hold(cohort_key(1, 2025, 4)):
                pass


def test_lock_is_released_when_block_raises():
    locks = CohortLockRegistry()
    key = cohort_key(1, 2025, 3)
    with pytest.raises(RuntimeError):
        with locks.hold(key):
            raise RuntimeError("boom")
    assert not locks.is_held(key)


def test_concurrent_threads_on_same_cohort():
    locks = CohortLockRegistry()
    key = cohort_key(1, 2025, 3)
    entered = threading.Event()
    release = threading.Event()
    errors = []

    def first_run():
        with locks.hold(key):
            entered.set()
            release.wait(timeout=5)

    def second_run():
        try:
            with locks.hold(key):
                pass
        except ResultsBusyError as e:
            errors.append(e)

    worker = threading.Thread(target=first_run)
    worker.start()
    assert entered.wait(timeout=5)

    second = threading.Thread(target=second_run)
    second.start()
    second.join(timeout=5)
    release.set()
    worker.join(timeout=5)

    assert len(errors) == 1


def test_released_keys_are_dropped():
    locks = CohortLockRegistry()
    for batch_id in range(1, 50):
        with locks.hold(cohort_key(batch_id, 2025, 3)):
            assert locks.held_keys() == [cohort_key(batch_id, 2025, 3)]

    assert locks.held_keys() == []
    assert not locks.is_held(cohort_key(1, 2025, 3))


def test_held_keys_lists_nested_runs():
    locks = CohortLockRegistry()
    with locks.hold(month_key(2025, 3)), locks.hold(cohort_key(4, 2025, 3)):
        assert locks.held_keys() == ["batch-4:2025-03", "month:2025-03"]
    assert locks.held_keys() == []
