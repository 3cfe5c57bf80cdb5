import threading
import time
from typing import Callable


class RateLimiter:
    """
    Sliding-window limiter: at most ``limit`` hits per key within ``window_seconds``.

    One instance lives on ``app.state`` and is handed to handlers through a
    dependency, so tests can swap in their own.
    """

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def _recent(self, key: str, now: float) -> list[float]:
        recent = [t for t in self._hits.get(key, ()) if now - t < self.window_seconds]
        if recent:
            self._hits[key] = recent
        else:
            self._hits.pop(key, None)
        return recent

    def is_limited(self, key: str) -> bool:
        with self._lock:
            return len(self._recent(key, self._clock())) >= self.limit

    def hit(self, key: str) -> bool:
        """Record a request. Returns False (and records nothing) when over the limit."""
        with self._lock:
            now = self._clock()
            recent = self._recent(key, now)
            if len(recent) >= self.limit:
                return False
            self._hits[key] = recent + [now]
            return True

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
