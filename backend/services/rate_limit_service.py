"""
Rate Limit Service - sliding-window limiter for contact form submissions.

Counts submissions per client IP over a trailing window. Timestamps are pruned
lazily on each lookup; IP keys are held in an LRU-ordered mapping capped at
``max_tracked_keys`` so a long-running process cannot grow without bound.

Note: Current implementation uses in-memory storage. With multiple instances
each process keeps its own counters; replace with Redis-backed storage if
cross-instance consistency is ever required.
"""

import math
import threading
from collections import OrderedDict
from typing import Dict, List


class SlidingWindowRateLimiter:
    """Per-key sliding-window counter.

    Timestamps are plain floats in seconds from whatever clock the caller
    uses; the limiter never reads the time itself, which lets tests drive it
    with a fake clock.
    """

    DEFAULT_WINDOW_SECONDS = 10 * 60
    DEFAULT_MAX_REQUESTS = 5
    DEFAULT_MAX_TRACKED_KEYS = 10_000

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        max_tracked_keys: int = DEFAULT_MAX_TRACKED_KEYS,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if max_tracked_keys < 1:
            raise ValueError("max_tracked_keys must be at least 1")

        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.max_tracked_keys = max_tracked_keys
        self._hits: "OrderedDict[str, List[float]]" = OrderedDict()
        self._lock = threading.Lock()

    def _recent(self, key: str, now: float) -> List[float]:
        return [t for t in self._hits.get(key, []) if now - t < self.window_seconds]

    def check_and_record(self, key: str, now: float) -> bool:
        """
        Record a hit for ``key`` and report whether it is over the limit.

        The hit is stored before the comparison, so the request that crosses
        the limit still counts: with a limit of 5 the 6th hit inside the
        window is the first one rejected, and it leaves a timestamp behind.

        Args:
            key: Client identifier (IP address)
            now: Current time in seconds

        Returns:
            True if the request must be rejected, False otherwise
        """
        with self._lock:
            recent = self._recent(key, now)
            recent.append(now)
            self._hits[key] = recent
            self._hits.move_to_end(key)

            while len(self._hits) > self.max_tracked_keys:
                self._hits.popitem(last=False)

            return len(recent) > self.max_requests

    def retry_after(self, key: str, now: float) -> int:
        """
        Seconds until the oldest in-window hit for ``key`` expires.

        Returns 0 when the key has no hits inside the window.
        """
        with self._lock:
            recent = self._recent(key, now)
        if not recent:
            return 0
        return max(0, math.ceil(min(recent) + self.window_seconds - now))

    def remaining(self, key: str, now: float) -> int:
        """Number of hits ``key`` may still make inside the current window."""
        with self._lock:
            recent = self._recent(key, now)
        return max(0, self.max_requests - len(recent))

    def sweep(self, now: float) -> int:
        """
        Drop keys whose hits have all left the window.

        Returns:
            Number of keys removed
        """
        with self._lock:
            stale = [key for key in self._hits if not self._recent(key, now)]
            for key in stale:
                del self._hits[key]
        return len(stale)

    def reset(self, key: str | None = None) -> None:
        """
        Forget one key, or every key when ``key`` is None.

        Useful for testing or admin operations.
        """
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)

    def snapshot(self) -> Dict[str, List[float]]:
        """Copy of the stored hits, least recently used key first."""
        with self._lock:
            return {key: list(hits) for key, hits in self._hits.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)
