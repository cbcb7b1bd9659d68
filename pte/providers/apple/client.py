"""Apple Music API adapter.

Requests carry two tokens: the developer token (``developer_token`` in the
provider config) as bearer, and the per-user Music User Token, which is the
credential handed to the adapter.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Sequence

from ...errors import AuthError
from ..base import AddOutcome, AddStatus, Platform, Playlist, Track
from ..http import HttpAdapter, format_duration_ms

logger = logging.getLogger(__name__)

API_BASE = "https://api.music.apple.com/v1"


class AppleMusicAdapter(HttpAdapter):
    """Apple Music adapter over library playlists and the catalog.

    The library API cannot remove tracks from a playlist, so ``replace``
    re-appends the song.
    """

    default_api_base = API_BASE

    def __init__(self, credential, config: Dict[str, Any] | None = None, session=None):
        super().__init__(credential, config, session)
        self.storefront = self.config.get("storefront", "us")
        self.developer_token = self.config.get("developer_token") or ""

    @property
    def platform(self) -> Platform:
        return Platform.APPLE

    def _headers(self) -> Dict[str, str]:
        if not self.developer_token:
            raise AuthError("Apple Music developer_token is not configured")
        return {
            "Authorization": f"Bearer {self.developer_token}",
            "Music-User-Token": self.credential.access_token,
        }

    def _host(self) -> str:
        return self.api_base[:-3] if self.api_base.endswith("/v1") else self.api_base

    def _song(self, resource: Dict[str, Any], position: int) -> Track:
        attrs = resource.get("attributes") or {}
        catalog_id = (attrs.get("playParams") or {}).get("catalogId") or resource.get("id")
        artist = attrs.get("artistName") or ""
        return Track(
            name=attrs.get("name") or "",
            position=position,
            platform=Platform.APPLE,
            artists=(artist,) if artist else (),
            album=attrs.get("albumName") or "",
            duration=format_duration_ms(attrs.get("durationInMillis")),
            external_id=catalog_id,
        )

    def fetch_tracks(self, playlist_id: str) -> List[Track]:
        tracks: List[Track] = []
        path: str | None = f"/me/library/playlists/{playlist_id}/tracks"
        params: Dict[str, Any] | None = {"limit": 100}
        while path:
            data = self._get(path, params=params, operation="fetch playlist tracks")
            for resource in data.get("data", []):
                tracks.append(self._song(resource, len(tracks) + 1))
            nxt = data.get("next")
            # "next" is host-relative and already carries the offset
            path = self._host() + nxt if nxt else None
            params = None
        return tracks

    def search_track(self, track: Track) -> Track | None:
        term = f"{track.name} {track.artist}".strip()
        data = self._get(
            f"/catalog/{self.storefront}/search",
            params={"term": term, "types": "songs", "limit": 1},
            operation="search catalog",
        )
        songs = ((data.get("results") or {}).get("songs") or {}).get("data") or []
        if not songs:
            return None
        return self._song(songs[0], track.position)

    def create_playlist(self, name: str, description: str) -> Playlist:
        data = self._post(
            "/me/library/playlists",
            json={"attributes": {"name": name, "description": description}},
            operation="create playlist",
        )
        created = (data.get("data") or [{}])[0]
        attrs = created.get("attributes") or {}
        return Playlist(
            id=created["id"],
            name=attrs.get("name", name),
            platform=Platform.APPLE,
            track_count=0,
            description=(attrs.get("description") or {}).get("standard", description),
            url=attrs.get("url", ""),
        )

    def add_tracks(self, playlist_id: str, tracks: Sequence[Track], replace: bool = False) -> List[AddOutcome]:
        if not tracks:
            return []
        self._post(
            f"/me/library/playlists/{playlist_id}/tracks",
            json={"data": [{"id": t.external_id, "type": "songs"} for t in tracks]},
            operation="add tracks",
        )
        return [AddOutcome(t, AddStatus.ADDED) for t in tracks]


__all__ = ["AppleMusicAdapter", "API_BASE"]
