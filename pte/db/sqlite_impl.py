"""SQLite-backed HistoryStore, persisted across process restarts."""
from __future__ import annotations
import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import List

from .interface import HISTORY_LIMIT, HistoryStore
from .models import TransferRecord

logger = logging.getLogger(__name__)

SCHEMA = [
    "PRAGMA journal_mode=WAL;",
    "CREATE TABLE IF NOT EXISTS transfer_history ("
    " seq INTEGER PRIMARY KEY AUTOINCREMENT,"
    " job_id TEXT,"
    " status TEXT NOT NULL,"
    " source_platform TEXT NOT NULL,"
    " target_platform TEXT NOT NULL,"
    " source_playlist TEXT NOT NULL,"
    " target_playlist TEXT,"
    " transferred_tracks INTEGER NOT NULL,"
    " total_tracks INTEGER NOT NULL,"
    " unmatched INTEGER NOT NULL DEFAULT 0,"
    " timestamp TEXT NOT NULL);",
    "CREATE TABLE IF NOT EXISTS meta (key TEXT PRIMARY KEY, value TEXT);",
]


class SqliteHistoryStore(HistoryStore):
    """HistoryStore persisted in a SQLite file.

    Order is the autoincrement ``seq`` (insertion order), never the
    timestamp, so clock changes cannot reorder history.
    """

    def __init__(self, path: Path, max_records: int = HISTORY_LIMIT):
        super().__init__(max_records)
        self.path = Path(path)
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        # Written from the engine worker thread, read from the caller's
        self.conn = sqlite3.connect(self.path, timeout=30, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._closed = False
        self._init_schema()

    def __enter__(self) -> "SqliteHistoryStore":  # pragma: no cover
        return self

    def __exit__(self, exc_type, exc, tb):  # pragma: no cover
        self.close()

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        cur.execute("INSERT OR REPLACE INTO meta(key,value) VALUES('schema_version','1')")
        self.conn.commit()

    def append(self, record: TransferRecord) -> None:
        with self._lock:
            self.conn.execute(
                "INSERT INTO transfer_history(job_id,status,source_platform,target_platform,source_playlist,"
                "target_playlist,transferred_tracks,total_tracks,unmatched,timestamp) VALUES(?,?,?,?,?,?,?,?,?,?)",
                (
                    record.job_id,
                    record.status,
                    record.source_platform.value,
                    record.target_platform.value,
                    json.dumps(record.source_playlist.to_dict()),
                    json.dumps(record.target_playlist.to_dict()) if record.target_playlist else None,
                    record.transferred_tracks,
                    record.total_tracks,
                    record.unmatched,
                    record.timestamp.isoformat(),
                ),
            )
            cur = self.conn.execute(
                "DELETE FROM transfer_history WHERE seq NOT IN "
                "(SELECT seq FROM transfer_history ORDER BY seq DESC LIMIT ?)",
                (self.max_records,),
            )
            self.conn.commit()
        if cur.rowcount:
            logger.debug(f"History trimmed by {cur.rowcount} record(s) (limit {self.max_records})")

    def list(self) -> List[TransferRecord]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT * FROM transfer_history ORDER BY seq DESC LIMIT ?", (self.max_records,)
            ).fetchall()
        return [TransferRecord.from_row(r) for r in rows]

    def clear(self) -> None:
        with self._lock:
            self.conn.execute("DELETE FROM transfer_history")
            self.conn.commit()

    def close(self) -> None:
        if not self._closed:
            self.conn.close()
            self._closed = True


__all__ = ["SqliteHistoryStore"]
