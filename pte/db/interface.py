"""History store interface.

Append-only, size-bounded log of finished transfers. A SQLite
implementation (``SqliteHistoryStore``) persists across restarts; the
in-memory one (``InMemoryHistoryStore``) serves tests and ephemeral runs.
Both keep insertion order and return newest first.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List

from .models import TransferRecord

HISTORY_LIMIT = 50


class HistoryStore(ABC):

    def __init__(self, max_records: int = HISTORY_LIMIT):
        if max_records < 1:
            raise ValueError(f"max_records must be positive, got {max_records}")
        self.max_records = max_records

    @abstractmethod
    def append(self, record: TransferRecord) -> None:
        """Insert at the front; evict the oldest records beyond ``max_records``."""

    @abstractmethod
    def list(self) -> List[TransferRecord]:
        """All retained records, newest first. Returns a fresh list each call."""

    @abstractmethod
    def clear(self) -> None: ...

    def __len__(self) -> int:
        return len(self.list())

    def close(self) -> None:  # pragma: no cover - trivial default
        pass


__all__ = ["HistoryStore", "HISTORY_LIMIT"]
