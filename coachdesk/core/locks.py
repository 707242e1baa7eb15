"""In-process locks serializing monthly result runs per cohort."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from coachdesk.core.exceptions import ResultsBusyError

logger = logging.getLogger(__name__)


def cohort_key(batch_id: int, year: int, month: int) -> str:
    """Build the lock key for one (batch, year, month) cohort."""
    return f"batch-{batch_id}:{year}-{month:02d}"


def month_key(year: int, month: int) -> str:
    """Build the lock key for a whole-month run across all batches."""
    return f"month:{year}-{month:02d}"


class CohortLockRegistry:
    """Registry of non-blocking locks keyed by cohort.

    A second run for a key that is already held fails fast with
    ResultsBusyError instead of waiting.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # Only keys currently held; released keys are dropped
        self._held: set[str] = set()

    def is_held(self, key: str) -> bool:
        """Check whether a run currently holds the key."""
        with self._guard:
            return key in self._held

    def held_keys(self) -> list[str]:
        """List the keys held by running jobs."""
        with self._guard:
            return sorted(self._held)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for key for the duration of the block."""
        with self._guard:
            if key in self._held:
                logger.warning(f"Rejected concurrent run for {key}")
                raise ResultsBusyError(key)
            self._held.add(key)
        try:
            yield
        finally:
            with self._guard:
                self._held.discard(key)
