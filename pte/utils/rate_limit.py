"""Sliding-window request limiter, one instance per platform adapter."""
from __future__ import annotations
import logging
import threading
import time
from collections import deque
from typing import Callable, Deque

logger = logging.getLogger(__name__)


class RateLimiter:
    """Admit at most ``max_requests`` calls per ``window`` seconds.

    ``wait_for_slot()`` never rejects; it sleeps until the oldest admitted
    call leaves the window. Safe for concurrent callers: the lock is only
    held while inspecting the window, never while sleeping.

    Args:
        max_requests: Calls admitted per window (must be positive)
        window: Window length in seconds
        clock: Monotonic time source (injectable for tests)
        sleep: Sleep function (injectable for tests)
    """

    def __init__(
        self,
        max_requests: int = 10,
        window: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {max_requests}")
        if window <= 0:
            raise ValueError(f"window must be positive, got {window}")
        self.max_requests = int(max_requests)
        self.window = float(window)
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._admitted: Deque[float] = deque()

    def _evict(self, now: float) -> None:
        while self._admitted and now - self._admitted[0] >= self.window:
            self._admitted.popleft()

    def wait_for_slot(self) -> float:
        """Block until a slot is free, record the call, return seconds waited."""
        waited = 0.0
        while True:
            with self._lock:
                now = self._clock()
                self._evict(now)
                if len(self._admitted) < self.max_requests:
                    self._admitted.append(now)
                    return waited
                delay = self.window - (now - self._admitted[0])
            if delay > 0:
                logger.debug(f"Rate limit reached ({self.max_requests}/{self.window:g}s), waiting {delay:.3f}s")
                self._sleep(delay)
                waited += delay


__all__ = ["RateLimiter"]
