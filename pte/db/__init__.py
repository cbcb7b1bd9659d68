from .interface import HistoryStore, HISTORY_LIMIT
from .memory_impl import InMemoryHistoryStore
from .sqlite_impl import SqliteHistoryStore
from .models import TransferRecord

__all__ = [
    "HistoryStore",
    "HISTORY_LIMIT",
    "InMemoryHistoryStore",
    "SqliteHistoryStore",
    "TransferRecord",
]
