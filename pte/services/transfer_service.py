"""Transfer engine: drives one playlist transfer job end to end.

State machine:
    Idle -> Running -> {Completed, Failed, Cancelled}

While Running the job moves through internal phases, surfaced only through
progress and status messages:
    fetching_source (0-10%) -> matching (10-60%) -> creating_playlist
    (60-65%) -> inserting_tracks (65-95%) -> finalizing (95-100%)

At most one job runs per engine. ``start_transfer`` validates, creates the
job and returns immediately; the phases run on a worker thread and talk to
callers only through listener events and the job snapshot.

Failure policy:
- fetch and playlist-creation errors end the job as Failed
- per-track search failures and per-batch insert failures are recorded on
  the job and processing continues; partial success is Completed
- auth, quota and unsupported-platform errors are Failed in any phase
- cancellation is cooperative: checked before every phase, track and batch;
  a call already in flight is allowed to finish
"""
from __future__ import annotations
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..db.interface import HistoryStore
from ..db.models import TransferRecord
from ..errors import ConflictError, TransferError, ValidationError, is_fatal
from ..match.resolver import MatchResolver
from ..match.scoring import build_strategy
from ..providers.base import AddStatus, Credential, Platform, PlatformAdapter, Playlist, Track, get_provider_instance
from ..utils.rate_limit import RateLimiter
from ..utils.retry import RetryExecutor
from .models import (
    ConflictDecision,
    ConflictResolution,
    JobError,
    JobState,
    Phase,
    ProgressEvent,
    TerminalEvent,
    TrackConflict,
    TransferEvent,
    TransferJob,
    TransferListener,
    TransferRequest,
)
from .session import AdapterSession

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[Platform, Credential], PlatformAdapter]


class _Cancelled(Exception):
    """Raised at a checkpoint once cancellation was requested."""


def provider_adapter_factory(cfg: Mapping) -> AdapterFactory:
    """Adapter factory backed by the provider registry and ``providers.*`` config."""
    providers_cfg = cfg.get("providers", {}) if cfg else {}

    def factory(platform: Platform, credential: Credential) -> PlatformAdapter:
        provider = get_provider_instance(platform)
        overrides = {k: v for k, v in (providers_cfg.get(platform.value) or {}).items() if v is not None}
        pcfg = {**provider.get_default_config(), **overrides}
        provider.validate_config(pcfg)
        return provider.create_adapter(credential, pcfg)

    return factory


class TransferEngine:
    """Owns the single in-flight ``TransferJob``.

    Args:
        history: Store receiving one ``TransferRecord`` per finished job
        config: Full configuration dict (``transfer``, ``matching`` and
            ``providers`` sections are read)
        adapter_factory: Builds an adapter for (platform, credential);
            defaults to the provider registry
        resolver: Match resolver; defaults to the configured strategy
        listeners: Callables receiving ``ProgressEvent``/``TerminalEvent``
        clock, sleep: Time hooks for rate limiting and retry backoff
    """

    def __init__(
        self,
        history: HistoryStore,
        config: Mapping | None = None,
        adapter_factory: AdapterFactory | None = None,
        resolver: MatchResolver | None = None,
        listeners: Iterable[TransferListener] = (),
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = history
        self.config = dict(config or {})
        self._adapter_factory = adapter_factory or provider_adapter_factory(self.config)
        self.resolver = resolver or MatchResolver(build_strategy(self.config.get("matching")))
        self._listeners: List[TransferListener] = list(listeners)
        self._clock = clock
        self._sleep = sleep
        self._retry_base_delay = float(self.config.get("transfer", {}).get("retry_base_delay", 1.0))

        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._job: Optional[TransferJob] = None
        self._worker: Optional[threading.Thread] = None

    # ---------------- Listeners -----------------

    def add_listener(self, listener: TransferListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: TransferListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: TransferEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Transfer listener raised; ignoring")

    # ---------------- Inbound operations -----------------

    @property
    def state(self) -> JobState:
        with self._lock:
            return self._job.state if self._job else JobState.IDLE

    def start_transfer(self, request: TransferRequest) -> TransferJob:
        """Accept a transfer and start it in the background.

        Returns:
            Snapshot of the newly created job (state Running)

        Raises:
            ConflictError: A job is already running
            ValidationError: The request is malformed
        """
        with self._lock:
            if self._job is not None and self._job.state is JobState.RUNNING:
                raise ConflictError(
                    f"Transfer {self._job.id} is already running ({self._job.progress}%)"
                )
            needs_fetch = self._validate(request)
            source = self._session(request, request.source_platform) if needs_fetch else None
            target = self._session(request, request.target_platform)

            job = TransferJob(
                source_playlist=request.source_playlist,
                source_platform=request.source_platform,
                target_platform=request.target_platform,
                options=request.options,
                total_tracks=request.source_playlist.track_count or 0,
                status_message="Transfer started",
            )
            self._job = job
            self._cancel.clear()
            worker = threading.Thread(
                target=self._run, args=(job, request, source, target), name=f"transfer-{job.id[:8]}", daemon=True
            )
            self._worker = worker
            snapshot = job.snapshot()
            worker.start()

        logger.info(
            f"Transfer {job.id[:8]} accepted: '{request.source_playlist.name}' "
            f"{request.source_platform.value} -> {request.target_platform.value}"
        )
        return snapshot

    def cancel_transfer(self) -> Optional[TransferJob]:
        """Request cancellation of the running job.

        No-op when nothing is running. Returns a snapshot of the job at the
        moment cancellation was requested (or None when idle).
        """
        with self._lock:
            if self._job is None or self._job.state is not JobState.RUNNING:
                return None
            self._cancel.set()
            self._job.status_message = "Cancelling..."
            snapshot = self._job.snapshot()
        logger.info(f"Cancellation requested for transfer {snapshot.id[:8]} at {snapshot.progress}%")
        return snapshot

    def get_status(self) -> Optional[TransferJob]:
        """Snapshot of the current (or most recent) job; None if none ever ran."""
        with self._lock:
            return self._job.snapshot() if self._job else None

    def wait(self, timeout: float | None = None) -> Optional[TransferJob]:
        """Block until the current worker finishes (or ``timeout`` elapses)."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
        return self.get_status()

    def history(self) -> List[TransferRecord]:
        """Past transfers, newest first."""
        return self.store.list()

    # ---------------- Validation / wiring -----------------

    def _validate(self, request: TransferRequest) -> bool:
        """Validate a request; return True when source tracks must be fetched."""
        if request.source_platform == request.target_platform:
            raise ValidationError(
                f"Source and target platform are both {request.source_platform.display_name}"
            )
        playlist = request.source_playlist
        if playlist.platform != request.source_platform:
            raise ValidationError(
                f"Playlist '{playlist.name}' belongs to {playlist.platform.value}, not {request.source_platform.value}"
            )
        if not playlist.tracks and playlist.track_count == 0:
            raise ValidationError(f"Source playlist '{playlist.name}' has no tracks")
        positions = [t.position for t in playlist.tracks]
        if len(set(positions)) != len(positions):
            raise ValidationError(f"Source playlist '{playlist.name}' has duplicate track positions")
        if request.options.conflict_resolution is ConflictResolution.ASK and request.conflict_resolver is None:
            raise ValidationError("conflict_resolution 'ask' requires a conflict resolver")
        needs_fetch = not playlist.tracks
        required = [request.target_platform] + ([request.source_platform] if needs_fetch else [])
        for platform in required:
            if platform not in request.credentials:
                raise ValidationError(f"No credential supplied for {platform.display_name}")
        return needs_fetch

    def _session(self, request: TransferRequest, platform: Platform) -> AdapterSession:
        try:
            adapter = self._adapter_factory(platform, request.credentials[platform])
        except KeyError as e:
            raise ValidationError(f"No provider registered for {platform.value}") from e
        except ValueError as e:
            raise ValidationError(str(e)) from e
        rps = adapter.config.get("requests_per_second", 10)
        return AdapterSession(
            adapter,
            limiter=RateLimiter(max_requests=rps, clock=self._clock, sleep=self._sleep),
            executor=RetryExecutor(base_delay=self._retry_base_delay, sleep=self._sleep, stop_event=self._cancel),
            max_attempts=request.options.retry_attempts,
        )

    # ---------------- Job bookkeeping -----------------

    def _checkpoint(self) -> None:
        if self._cancel.is_set():
            raise _Cancelled()

    def _progress(self, job: TransferJob, phase: Phase, progress: int, message: str) -> None:
        with self._lock:
            # After cancellation nothing moves forward
            if self._cancel.is_set():
                return
            job.phase = phase
            job.progress = max(job.progress, min(100, int(progress)))
            job.status_message = message
            event = ProgressEvent(job.id, job.progress, message, phase)
        logger.debug(f"[{event.progress:3d}%] {message}")
        self._notify(event)

    def _record_error(self, job: TransferJob, error: JobError) -> None:
        with self._lock:
            job.errors.append(error)

    # ---------------- Worker -----------------

    def _run(
        self,
        job: TransferJob,
        request: TransferRequest,
        source: Optional[AdapterSession],
        target: AdapterSession,
    ) -> None:
        try:
            tracks = self._fetch_phase(job, request, source)
            self._match_phase(job, tracks, target)
            playlist = self._create_phase(job, request, target)
            self._insert_phase(job, request, playlist, target)
            self._checkpoint()
            self._progress(job, Phase.FINALIZING, Phase.FINALIZING.band[0], "Saving transfer history")
            self._finish(job, JobState.COMPLETED)
        except _Cancelled:
            self._finish(job, JobState.CANCELLED)
        except Exception as e:
            phase = job.phase or Phase.FETCHING_SOURCE
            if isinstance(e, TransferError):
                logger.error(f"Transfer {job.id[:8]} failed during {phase.value}: {e.kind}: {e}")
            else:
                logger.exception(f"Transfer {job.id[:8]} failed during {phase.value}")
            error = JobError.from_exception(phase, e)
            self._record_error(job, error)
            if self._cancel.is_set():
                # A cancelled job ends Cancelled even if its in-flight call failed
                self._finish(job, JobState.CANCELLED)
            else:
                self._finish(job, JobState.FAILED, reason=str(error))

    def _fetch_phase(self, job: TransferJob, request: TransferRequest, source: Optional[AdapterSession]) -> List[Track]:
        self._checkpoint()
        playlist = request.source_playlist
        self._progress(job, Phase.FETCHING_SOURCE, 0, f"Fetching tracks of '{playlist.name}'...")
        if source is None:
            tracks = playlist.ordered_tracks()
        else:
            tracks = sorted(source.fetch_tracks(playlist.id), key=lambda t: t.position)
            if not tracks:
                raise ValidationError(f"Source playlist '{playlist.name}' has no tracks", phase=Phase.FETCHING_SOURCE.value)
        with self._lock:
            job.total_tracks = len(tracks)
        logger.info(f"Source: {len(tracks)} tracks from {request.source_platform.display_name}")
        return tracks

    def _match_phase(self, job: TransferJob, tracks: Sequence[Track], target: AdapterSession) -> None:
        self._checkpoint()
        lo, hi = Phase.MATCHING.band
        total = len(tracks)
        self._progress(job, Phase.MATCHING, lo, f"Searching {total} tracks on {target.platform.display_name}...")
        for i, track in enumerate(tracks, start=1):
            self._checkpoint()
            result = self.resolver.resolve(track, target)
            with self._lock:
                job.match_results.append(result)
                if result.error is not None:
                    job.errors.append(result.error)
            verb = "Matched" if result.found else "No match for"
            self._progress(job, Phase.MATCHING, lo + (hi - lo) * i // total, f"{verb} {track.label} ({i}/{total})")
        found = sum(1 for r in job.match_results if r.found)
        logger.info(f"Matching done: {found}/{total} tracks found on {target.platform.display_name}")

    def _create_phase(self, job: TransferJob, request: TransferRequest, target: AdapterSession) -> Playlist:
        self._checkpoint()
        source = request.source_playlist
        name = request.target_name or source.name
        description = source.description or f"Transferred from {request.source_platform.display_name}"
        self._progress(job, Phase.CREATING_PLAYLIST, Phase.CREATING_PLAYLIST.band[0], f"Creating playlist '{name}'...")
        playlist = target.create_playlist(name, description)
        with self._lock:
            job.target_playlist = playlist
        logger.info(f"Created {target.platform.display_name} playlist '{playlist.name}' ({playlist.id})")
        return playlist

    def _insert_phase(self, job: TransferJob, request: TransferRequest, playlist: Playlist, target: AdapterSession) -> None:
        self._checkpoint()
        lo, hi = Phase.INSERTING_TRACKS.band
        # match_results is in source position order; keep it
        matched = [r.match for r in job.match_results if r.found]
        size = request.options.batch_size
        batches = [matched[i:i + size] for i in range(0, len(matched), size)]
        self._progress(
            job, Phase.INSERTING_TRACKS, lo, f"Adding {len(matched)} tracks in {len(batches)} batch(es)..."
        )
        placed: Set[str] = set()
        for b, batch in enumerate(batches, start=1):
            self._checkpoint()
            self._insert_batch(job, request, playlist, target, batch, placed, b)
            self._progress(
                job, Phase.INSERTING_TRACKS, lo + (hi - lo) * b // len(batches),
                f"Inserted batch {b}/{len(batches)}",
            )

    def _decide(self, job: TransferJob, request: TransferRequest, playlist: Playlist, track: Track) -> ConflictDecision:
        mode = request.options.conflict_resolution
        if mode is ConflictResolution.SKIP:
            return ConflictDecision.SKIP
        if mode is ConflictResolution.REPLACE:
            return ConflictDecision.REPLACE
        with self._lock:
            job.status_message = f"Waiting for decision on duplicate '{track.label}'"
        decision = ConflictDecision(request.conflict_resolver(TrackConflict(track, playlist, job.id)))
        logger.info(f"Conflict on '{track.label}' resolved: {decision.value}")
        return decision

    def _plan_batch(
        self, job: TransferJob, request: TransferRequest, playlist: Playlist, batch: Sequence[Track], placed: Set[str]
    ) -> Tuple[List[Track], bool]:
        """Apply conflict resolution; return (tracks to send, replace flag)."""
        send: List[Track] = []
        replace = False
        for track in batch:
            pending = next((t for t in send if t.external_id == track.external_id), None)
            if track.external_id not in placed and pending is None:
                send.append(track)
                continue
            if self._decide(job, request, playlist, track) is ConflictDecision.SKIP:
                logger.debug(f"Skipping duplicate '{track.label}'")
                continue
            if pending is not None:
                send.remove(pending)
            send.append(track)
            replace = replace or track.external_id in placed
        return send, replace

    def _insert_batch(
        self,
        job: TransferJob,
        request: TransferRequest,
        playlist: Playlist,
        target: AdapterSession,
        batch: Sequence[Track],
        placed: Set[str],
        index: int,
    ) -> None:
        send, replace = self._plan_batch(job, request, playlist, batch, placed)
        if not send:
            return
        try:
            outcomes = target.add_tracks(playlist.id, send, replace=replace)
            duplicates = [o.track for o in outcomes if o.status is AddStatus.DUPLICATE]
            retry = [t for t in duplicates if self._decide(job, request, playlist, t) is ConflictDecision.REPLACE]
            if retry:
                outcomes = [o for o in outcomes if o.track not in retry] + target.add_tracks(
                    playlist.id, retry, replace=True
                )
        except TransferError as e:
            if is_fatal(e):
                raise
            logger.warning(f"Batch {index} ({len(send)} tracks) failed: {e}")
            self._record_error(
                job, JobError(Phase.INSERTING_TRACKS, e.kind, f"batch {index} ({len(send)} tracks): {e}")
            )
            return

        added = 0
        for outcome in outcomes:
            track = outcome.track
            if outcome.status in (AddStatus.ADDED, AddStatus.DUPLICATE):
                placed.add(track.external_id)
            if outcome.ok:
                added += 1
            elif outcome.status is not AddStatus.DUPLICATE:
                logger.warning(f"'{track.label}' not added: {outcome.status.value} {outcome.reason}".rstrip())
                self._record_error(job, JobError(
                    Phase.INSERTING_TRACKS, outcome.status.value, outcome.reason or outcome.status.value, track.label
                ))
        with self._lock:
            job.transferred_tracks += added
        logger.info(f"Batch {index}: {added}/{len(send)} tracks added")

    # ---------------- Termination -----------------

    def _finish(self, job: TransferJob, state: JobState, reason: str | None = None) -> None:
        with self._lock:
            record = TransferRecord(
                source_playlist=job.source_playlist,
                source_platform=job.source_platform,
                target_platform=job.target_platform,
                target_playlist=job.target_playlist,
                transferred_tracks=min(job.transferred_tracks, job.total_tracks),
                total_tracks=job.total_tracks,
                timestamp=datetime.now(timezone.utc),
                status=state.value,
                unmatched=len(job.unmatched),
                job_id=job.id,
            )
        try:
            self.store.append(record)
        except Exception as e:
            logger.exception("Could not write transfer history")
            self._record_error(job, JobError.from_exception(Phase.FINALIZING, e))

        with self._lock:
            job.state = state
            job.finished_at = record.timestamp
            if state is JobState.COMPLETED:
                job.phase = Phase.FINALIZING
                job.progress = 100
                job.status_message = (
                    f"Transfer completed: {job.transferred_tracks}/{job.total_tracks} tracks transferred"
                )
            elif state is JobState.CANCELLED:
                job.status_message = "Transfer cancelled"
            else:
                job.status_message = f"Transfer failed: {reason}"
            final = job.snapshot()

        if state is JobState.COMPLETED:
            self._notify(ProgressEvent(job.id, 100, final.status_message, Phase.FINALIZING))
        logger.info(f"Transfer {job.id[:8]} {state.value}: {final.status_message}")
        self._notify(TerminalEvent(job.id, state, reason=reason, job=final))


__all__ = ["TransferEngine", "AdapterFactory", "provider_adapter_factory"]
