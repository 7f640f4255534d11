import threading
import time
from collections import deque
from typing import Deque, Dict

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    """Sliding-window limiter keyed by caller (usually client IP + route group).

    Keys whose hits have all aged out are dropped every ``sweep_every`` calls,
    so the map stays bounded by the callers seen within the longest window.
    """

    def __init__(self, clock=time.monotonic, sweep_every: int = 1000) -> None:
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_every = sweep_every
        self._calls = 0
        self._max_window = 0

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = self._clock()
        window_start = now - window_seconds
        with self._lock:
            self._max_window = max(self._max_window, window_seconds)
            self._calls += 1
            if self._calls % self._sweep_every == 0:
                self._sweep(now)

            hits = self._hits.get(key)
            if hits is None:
                hits = self._hits[key] = deque()
            while hits and hits[0] <= window_start:
                hits.popleft()
            if len(hits) >= max_requests:
                return False
            hits.append(now)
            return True

    def _sweep(self, now: float) -> None:
        horizon = now - self._max_window
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= horizon]
        for k in stale:
            del self._hits[k]

    def __len__(self) -> int:
        return len(self._hits)
