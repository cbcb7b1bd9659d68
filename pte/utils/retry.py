"""Bounded retry with linear backoff for adapter calls.

Only ``TransientError`` is retried; any other exception propagates from the
first attempt. After the last attempt the final error is re-raised as is.
"""
from __future__ import annotations
import logging
import threading
import time
from typing import Callable, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    stop_when_event_set,
    wait_incrementing,
)

from ..errors import is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Run an operation up to ``max_attempts`` times.

    The wait after failed attempt ``n`` is ``n * base_delay`` seconds.
    ``max_attempts`` of 0 or 1 both mean a single attempt. Once
    ``stop_event`` is set no further attempt starts and the last error is
    re-raised.
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        stop_event: threading.Event | None = None,
    ):
        if base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {base_delay}")
        self.base_delay = float(base_delay)
        self._sleep = sleep
        self._stop_event = stop_event

    def execute(self, operation: Callable[[], T], max_attempts: int) -> T:
        stop = stop_after_attempt(max(1, int(max_attempts)))
        if self._stop_event is not None:
            stop = stop | stop_when_event_set(self._stop_event)
        retrying = Retrying(
            stop=stop,
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_exception(is_transient),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(operation)


__all__ = ["RetryExecutor"]
