"""In-memory HistoryStore."""
from __future__ import annotations
import threading
from collections import deque
from typing import Deque, List

from .interface import HISTORY_LIMIT, HistoryStore
from .models import TransferRecord


class InMemoryHistoryStore(HistoryStore):
    def __init__(self, max_records: int = HISTORY_LIMIT):
        super().__init__(max_records)
        self._records: Deque[TransferRecord] = deque(maxlen=max_records)
        self._lock = threading.Lock()

    def append(self, record: TransferRecord) -> None:
        with self._lock:
            # appendleft on a bounded deque drops from the right (oldest)
            self._records.appendleft(record)

    def list(self) -> List[TransferRecord]:
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


__all__ = ["InMemoryHistoryStore"]
