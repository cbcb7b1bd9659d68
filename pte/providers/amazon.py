"""Amazon Music provider.

Amazon exposes no public playlist API, so every operation fails with a
non-transient ``NotSupportedError``. The provider is registered so that
selecting Amazon yields a clear job failure instead of an unknown-platform
error.
"""

from __future__ import annotations
from typing import Any, Dict, List, Sequence

from ..errors import NotSupportedError
from .base import AddOutcome, Credential, Platform, PlatformAdapter, Playlist, Provider, Track


class AmazonMusicAdapter(PlatformAdapter):

    @property
    def platform(self) -> Platform:
        return Platform.AMAZON

    def _unsupported(self, operation: str) -> NotSupportedError:
        return NotSupportedError(f"Amazon Music does not support {operation}")

    def fetch_tracks(self, playlist_id: str) -> List[Track]:
        raise self._unsupported("fetching playlist tracks")

    def search_track(self, track: Track) -> Track | None:
        raise self._unsupported("track search")

    def create_playlist(self, name: str, description: str) -> Playlist:
        raise self._unsupported("playlist creation")

    def add_tracks(self, playlist_id: str, tracks: Sequence[Track], replace: bool = False) -> List[AddOutcome]:
        raise self._unsupported("adding tracks")


class AmazonMusicProvider(Provider):

    @property
    def platform(self) -> Platform:
        return Platform.AMAZON

    def create_adapter(self, credential: Credential, config: Dict[str, Any] | None = None) -> AmazonMusicAdapter:
        return AmazonMusicAdapter(credential, config)

    def get_default_config(self) -> Dict[str, Any]:
        return {"requests_per_second": 10, "timeout_seconds": 30}


__all__ = ["AmazonMusicAdapter", "AmazonMusicProvider"]
