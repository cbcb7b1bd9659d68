"""Spotify Web API adapter.

Handles all HTTP requests to Spotify Web API endpoints needed for a
transfer: reading playlist items, searching the catalog, creating a
playlist and appending track URIs.
"""

from __future__ import annotations
from typing import Any, Dict, List, Sequence
import logging

from ..base import AddOutcome, AddStatus, Platform, Playlist, Track
from ..http import HttpAdapter, format_duration_ms

logger = logging.getLogger(__name__)
API_BASE = "https://api.spotify.com/v1"
MAX_URIS_PER_REQUEST = 100


def _quote(value: str) -> str:
    return value.replace('"', " ").strip()


class SpotifyAdapter(HttpAdapter):
    """Spotify Web API adapter.

    Spotify accepts duplicate URIs in a playlist, so every accepted URI is
    reported as added; conflict handling happens in the engine.
    """

    default_api_base = API_BASE

    def __init__(self, credential, config: Dict[str, Any] | None = None, session=None):
        super().__init__(credential, config, session)
        self._user_id: str | None = None

    @property
    def platform(self) -> Platform:
        return Platform.SPOTIFY

    def _track_from_item(self, data: Dict[str, Any], position: int) -> Track | None:
        if not data or not data.get("id") or data.get("is_local"):
            return None
        return Track(
            name=data.get("name") or "",
            position=position,
            platform=Platform.SPOTIFY,
            artists=tuple(a.get("name", "") for a in data.get("artists") or []),
            album=(data.get("album") or {}).get("name") or "",
            duration=format_duration_ms(data.get("duration_ms")),
            external_id=data["id"],
        )

    def fetch_tracks(self, playlist_id: str) -> List[Track]:
        """Fetch all tracks in a playlist, skipping local files and removed items."""
        tracks: List[Track] = []
        limit = 100
        offset = 0
        while True:
            data = self._get(
                f"/playlists/{playlist_id}/tracks",
                params={"limit": limit, "offset": offset},
                operation="fetch playlist tracks",
            )
            items = data.get("items", [])
            for item in items:
                track = self._track_from_item(item.get("track") or {}, len(tracks) + 1)
                if track:
                    tracks.append(track)
            logger.debug(f"Playlist {playlist_id} page fetched {len(items)} tracks (offset={offset})")
            if len(items) < limit:
                break
            offset += limit
        return tracks

    def search_track(self, track: Track) -> Track | None:
        query = f'track:"{_quote(track.name)}"'
        if track.artists:
            query += f' artist:"{_quote(track.artists[0])}"'
        data = self._get("/search", params={"q": query, "type": "track", "limit": 1}, operation="search track")
        items = (data.get("tracks") or {}).get("items") or []
        if not items:
            return None
        return self._track_from_item(items[0], track.position)

    def _current_user_id(self) -> str:
        if self._user_id is None:
            self._user_id = self._get("/me", operation="read profile")["id"]
        return self._user_id

    def create_playlist(self, name: str, description: str) -> Playlist:
        user_id = self._current_user_id()
        data = self._post(
            f"/users/{user_id}/playlists",
            json={"name": name, "description": description, "public": False},
            operation="create playlist",
        )
        return Playlist(
            id=data["id"],
            name=data.get("name", name),
            platform=Platform.SPOTIFY,
            track_count=0,
            description=data.get("description") or description,
            url=(data.get("external_urls") or {}).get("spotify", f"https://open.spotify.com/playlist/{data['id']}"),
        )

    def add_tracks(self, playlist_id: str, tracks: Sequence[Track], replace: bool = False) -> List[AddOutcome]:
        outcomes: List[AddOutcome] = []
        for i in range(0, len(tracks), MAX_URIS_PER_REQUEST):
            chunk = list(tracks[i:i + MAX_URIS_PER_REQUEST])
            uris = [f"spotify:track:{t.external_id}" for t in chunk]
            if replace:
                self._request(
                    "DELETE",
                    f"/playlists/{playlist_id}/tracks",
                    json={"tracks": [{"uri": u} for u in uris]},
                    operation="remove existing tracks",
                )
            self._post(f"/playlists/{playlist_id}/tracks", json={"uris": uris}, operation="add tracks")
            outcomes.extend(AddOutcome(t, AddStatus.ADDED) for t in chunk)
        return outcomes


__all__ = ["SpotifyAdapter", "API_BASE"]
