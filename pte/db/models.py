"""History record type.

A ``TransferRecord`` is the immutable summary written once per finished
job. Playlists are stored without their track lists.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import json

from ..providers.base import Platform, Playlist


@dataclass(frozen=True)
class TransferRecord:
    source_playlist: Playlist
    source_platform: Platform
    target_platform: Platform
    target_playlist: Optional[Playlist]
    transferred_tracks: int
    total_tracks: int
    timestamp: datetime
    status: str = "completed"
    unmatched: int = 0
    job_id: Optional[str] = None

    def __post_init__(self):
        if not 0 <= self.transferred_tracks <= self.total_tracks:
            raise ValueError(
                f"transferred_tracks ({self.transferred_tracks}) must be within 0..total_tracks ({self.total_tracks})"
            )
        # Records never hold track lists; track_count is kept
        if self.source_playlist.tracks:
            object.__setattr__(self, "source_playlist", replace(self.source_playlist, tracks=()))
        if self.target_playlist is not None and self.target_playlist.tracks:
            object.__setattr__(self, "target_playlist", replace(self.target_playlist, tracks=()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status,
            "source_platform": self.source_platform.value,
            "target_platform": self.target_platform.value,
            "source_playlist": self.source_playlist.to_dict(),
            "target_playlist": self.target_playlist.to_dict() if self.target_playlist else None,
            "transferred_tracks": self.transferred_tracks,
            "total_tracks": self.total_tracks,
            "unmatched": self.unmatched,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TransferRecord:
        ts = datetime.fromisoformat(data["timestamp"])
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        target = data.get("target_playlist")
        return cls(
            source_playlist=Playlist.from_dict(data["source_playlist"]),
            source_platform=Platform.parse(data["source_platform"]),
            target_platform=Platform.parse(data["target_platform"]),
            target_playlist=Playlist.from_dict(target) if target else None,
            transferred_tracks=int(data["transferred_tracks"]),
            total_tracks=int(data["total_tracks"]),
            timestamp=ts,
            status=data.get("status", "completed"),
            unmatched=int(data.get("unmatched") or 0),
            job_id=data.get("job_id"),
        )

    @classmethod
    def from_row(cls, row) -> TransferRecord:
        """Convert a sqlite3.Row from transfer_history to a record."""
        target = row["target_playlist"]
        return cls.from_dict({
            "job_id": row["job_id"],
            "status": row["status"],
            "source_platform": row["source_platform"],
            "target_platform": row["target_platform"],
            "source_playlist": json.loads(row["source_playlist"]),
            "target_playlist": json.loads(target) if target else None,
            "transferred_tracks": row["transferred_tracks"],
            "total_tracks": row["total_tracks"],
            "unmatched": row["unmatched"],
            "timestamp": row["timestamp"],
        })


__all__ = ["TransferRecord"]
