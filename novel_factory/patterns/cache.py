"""Time-bounded cache for the active recurring pattern list."""

import time
from typing import Callable, List, Optional

from ..models.patterns import RecurringIssuePattern


class ActivePatternsCache:
    """Holds the last fetched active pattern list and when it was fetched.

    The cache is advisory: entries expire after ``ttl_seconds`` and are
    dropped on any write that changes a pattern. The last entry stays
    reachable through ``stale()`` so callers can fall back to it when the
    store is unavailable.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._patterns: Optional[List[RecurringIssuePattern]] = None
        self._timestamp = 0.0
        self._last: Optional[List[RecurringIssuePattern]] = None

    def get(self) -> Optional[List[RecurringIssuePattern]]:
        """Return the cached list if it is still fresh, else None."""
        if self._patterns is None:
            return None
        if self._clock() - self._timestamp >= self.ttl_seconds:
            return None
        return list(self._patterns)

    def store(self, patterns: List[RecurringIssuePattern]):
        self._patterns = list(patterns)
        self._last = list(patterns)
        self._timestamp = self._clock()

    def invalidate(self):
        self._patterns = None

    def stale(self) -> Optional[List[RecurringIssuePattern]]:
        """The most recently stored list, ignoring expiry and invalidation."""
        return list(self._last) if self._last is not None else None
