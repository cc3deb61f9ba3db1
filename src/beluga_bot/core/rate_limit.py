from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

DEFAULT_MAX_REQUESTS = 100
DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_CAPACITY = 10_000


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Best-effort fixed-window limiter keyed by client.

    The table is bounded: once ``capacity`` keys are tracked the oldest window
    is evicted. State is process-local and is not shared between workers.
    """

    def __init__(
        self,
        *,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._capacity = capacity
        self._clock = clock
        self._windows: OrderedDict[str, _Window] = OrderedDict()

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, key: str) -> bool:
        """Count one request for ``key``; False once the window is exhausted."""
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now >= window.reset_at:
            self._windows.pop(key, None)
            while len(self._windows) >= self._capacity:
                self._windows.popitem(last=False)
            self._windows[key] = _Window(count=1, reset_at=now + self._window_seconds)
            return True
        if window.count >= self._max_requests:
            return False
        window.count += 1
        return True

    def prune(self, now: Optional[float] = None) -> int:
        current = self._clock() if now is None else now
        expired = [key for key, window in self._windows.items() if current >= window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)
