# services/poll_limiter.py

"""
Per-job throttle for status polling
"""

import time
import threading
from typing import Callable, Dict


class PollRateLimiter:
    """Allow at most one status poll per job id every ``min_interval`` seconds"""

    def __init__(self, min_interval: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self.min_interval = min_interval
        self._clock = clock
        self._last_poll: Dict[str, float] = {}
        self._lock = threading.Lock()

    def try_acquire(self, job_id: str) -> float:
        """Record a poll. Returns 0 when allowed, else seconds until the next one is."""
        if self.min_interval <= 0:
            return 0.0

        now = self._clock()
        with self._lock:
            last = self._last_poll.get(job_id)
            if last is not None:
                remaining = self.min_interval - (now - last)
                if remaining > 0:
                    return remaining
            self._last_poll[job_id] = now
        return 0.0

    def forget(self, job_id: str):
        with self._lock:
            self._last_poll.pop(job_id, None)

    def prune(self, keep: Callable[[str], bool]) -> int:
        """Drop entries for job ids that no longer exist"""
        with self._lock:
            stale = [jid for jid in self._last_poll if not keep(jid)]
            for jid in stale:
                del self._last_poll[jid]
        return len(stale)
