"""Adapter session: one platform adapter behind its own limiter and retry policy.

Every adapter call made by the engine goes through a session, so rate
limiting and retry state are scoped per platform and never shared.
"""
from __future__ import annotations
import logging
from typing import Callable, List, Sequence, TypeVar

from ..providers.base import AddOutcome, Platform, PlatformAdapter, Playlist, Track
from ..utils.rate_limit import RateLimiter
from ..utils.retry import RetryExecutor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AdapterSession:
    """Exposes the adapter operations, each rate limited and retried.

    The limiter is consulted once per attempt, so retries are paced like
    any other request.
    """

    def __init__(
        self,
        adapter: PlatformAdapter,
        limiter: RateLimiter | None = None,
        executor: RetryExecutor | None = None,
        max_attempts: int = 3,
    ):
        self.adapter = adapter
        self.limiter = limiter or RateLimiter()
        self.executor = executor or RetryExecutor()
        self.max_attempts = max_attempts

    @property
    def platform(self) -> Platform:
        return self.adapter.platform

    def call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        def attempt() -> T:
            self.limiter.wait_for_slot()
            return fn(*args, **kwargs)

        return self.executor.execute(attempt, self.max_attempts)

    def fetch_tracks(self, playlist_id: str) -> List[Track]:
        return self.call(self.adapter.fetch_tracks, playlist_id)

    def search_track(self, track: Track) -> Track | None:
        return self.call(self.adapter.search_track, track)

    def create_playlist(self, name: str, description: str) -> Playlist:
        return self.call(self.adapter.create_playlist, name, description)

    def add_tracks(self, playlist_id: str, tracks: Sequence[Track], replace: bool = False) -> List[AddOutcome]:
        return self.call(self.adapter.add_tracks, playlist_id, list(tracks), replace=replace)


__all__ = ["AdapterSession"]
