"""Transfer job data model.

A ``TransferJob`` is owned exclusively by the engine while it runs; callers
only ever see copies (``snapshot()``). Everything a consumer needs to
render progress arrives through ``ProgressEvent`` / ``TerminalEvent``.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
import uuid

from ..errors import TransferError, ValidationError
from ..providers.base import Credential, Platform, Playlist, Track


class ConflictResolution(str, Enum):
    SKIP = "skip"
    REPLACE = "replace"
    ASK = "ask"


class ConflictDecision(str, Enum):
    SKIP = "skip"
    REPLACE = "replace"


class JobState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED)


class Phase(str, Enum):
    """Internal phases of a running job with their progress bands."""
    FETCHING_SOURCE = "fetching_source"
    MATCHING = "matching"
    CREATING_PLAYLIST = "creating_playlist"
    INSERTING_TRACKS = "inserting_tracks"
    FINALIZING = "finalizing"

    @property
    def band(self) -> tuple[int, int]:
        return _PHASE_BANDS[self]


_PHASE_BANDS = {
    Phase.FETCHING_SOURCE: (0, 10),
    Phase.MATCHING: (10, 60),
    Phase.CREATING_PLAYLIST: (60, 65),
    Phase.INSERTING_TRACKS: (65, 95),
    Phase.FINALIZING: (95, 100),
}


@dataclass
class TransferOptions:
    conflict_resolution: ConflictResolution = ConflictResolution.SKIP
    batch_size: int = 50
    retry_attempts: int = 3

    def __post_init__(self):
        try:
            self.conflict_resolution = ConflictResolution(self.conflict_resolution)
        except ValueError:
            raise ValidationError(
                f"conflict_resolution must be one of skip, replace, ask; got {self.conflict_resolution!r}"
            ) from None
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise ValidationError(f"batch_size must be a positive integer, got {self.batch_size!r}")
        if isinstance(self.retry_attempts, bool) or not isinstance(self.retry_attempts, int) or self.retry_attempts < 0:
            raise ValidationError(f"retry_attempts must be a non-negative integer, got {self.retry_attempts!r}")

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], **overrides: Any) -> TransferOptions:
        """Seed options from the ``transfer`` config section; non-None overrides win."""
        section = dict(cfg.get("transfer", {}))
        values = {
            "conflict_resolution": section.get("conflict_resolution", "skip"),
            "batch_size": section.get("batch_size", 50),
            "retry_attempts": section.get("retry_attempts", 3),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conflict_resolution": self.conflict_resolution.value,
            "batch_size": self.batch_size,
            "retry_attempts": self.retry_attempts,
        }


@dataclass(frozen=True)
class TrackConflict:
    """A matched track whose target id is already in the destination playlist."""
    track: Track
    playlist: Playlist
    job_id: str


ConflictResolver = Callable[[TrackConflict], ConflictDecision]


@dataclass
class TransferRequest:
    source_playlist: Playlist
    source_platform: Platform
    target_platform: Platform
    credentials: Mapping[Platform, Credential]
    options: TransferOptions = field(default_factory=TransferOptions)
    target_name: Optional[str] = None
    conflict_resolver: Optional[ConflictResolver] = None

    def __post_init__(self):
        self.source_platform = Platform.parse(self.source_platform)
        self.target_platform = Platform.parse(self.target_platform)
        self.credentials = {Platform.parse(k): v for k, v in dict(self.credentials).items()}


@dataclass(frozen=True)
class JobError:
    """User-visible error descriptor: what failed, where, and why."""
    phase: Phase
    kind: str
    message: str
    track: Optional[str] = None

    @classmethod
    def from_exception(cls, phase: Phase, exc: BaseException, track: Optional[Track] = None) -> JobError:
        kind = exc.kind if isinstance(exc, TransferError) else type(exc).__name__
        return cls(phase=phase, kind=kind, message=str(exc) or kind, track=track.label if track else None)

    def __str__(self) -> str:
        where = f" [{self.track}]" if self.track else ""
        return f"{self.phase.value}: {self.kind}: {self.message}{where}"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of resolving one source track.

    ``match`` is present iff ``found``; ``error`` is present iff the search
    itself failed (as opposed to finding no equivalent).
    """
    original: Track
    found: bool
    match: Optional[Track] = None
    error: Optional[JobError] = None
    score: Optional[float] = None

    def __post_init__(self):
        if self.found != (self.match is not None):
            raise ValueError("match must be present iff found")
        if self.found and self.error is not None:
            raise ValueError("a found match cannot carry an error")


@dataclass
class TransferJob:
    source_playlist: Playlist
    source_platform: Platform
    target_platform: Platform
    options: TransferOptions
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: JobState = JobState.RUNNING
    phase: Optional[Phase] = None
    progress: int = 0
    status_message: str = ""
    errors: List[JobError] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    match_results: List[MatchResult] = field(default_factory=list)
    target_playlist: Optional[Playlist] = None
    transferred_tracks: int = 0
    total_tracks: int = 0

    @property
    def unmatched(self) -> List[MatchResult]:
        return [r for r in self.match_results if not r.found]

    def snapshot(self) -> TransferJob:
        """Copy safe to hand out while the worker keeps mutating the original."""
        return replace(self, errors=list(self.errors), match_results=list(self.match_results))


@dataclass(frozen=True)
class ProgressEvent:
    job_id: str
    progress: int
    message: str
    phase: Phase


@dataclass(frozen=True)
class TerminalEvent:
    job_id: str
    state: JobState
    reason: Optional[str] = None
    job: Optional[TransferJob] = None


TransferEvent = Union[ProgressEvent, TerminalEvent]
TransferListener = Callable[[TransferEvent], None]


__all__ = [
    "ConflictResolution",
    "ConflictDecision",
    "JobState",
    "Phase",
    "TransferOptions",
    "TrackConflict",
    "ConflictResolver",
    "TransferRequest",
    "JobError",
    "MatchResult",
    "TransferJob",
    "ProgressEvent",
    "TerminalEvent",
    "TransferEvent",
    "TransferListener",
]
