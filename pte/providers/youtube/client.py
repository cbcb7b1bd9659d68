"""YouTube Data API v3 adapter.

YouTube Music playlists are ordinary YouTube playlists; tracks are videos.
Inserts are one request per video, so per-track rejections are reported as
outcomes while auth and quota failures abort the whole call.

Quota costs (default 10k units/day):
- search.list: 100 units
- playlistItems.list: 1 unit
- playlistItems.insert / delete: 50 units
- playlists.insert: 50 units
"""

from __future__ import annotations
import logging
import re
from typing import Any, Dict, List, Sequence, Tuple

from ...errors import AuthError, NotFoundError, QuotaError, TransferError, TransientError
from ..base import AddOutcome, AddStatus, Platform, Playlist, Track
from ..http import HttpAdapter

logger = logging.getLogger(__name__)

API_BASE = "https://www.googleapis.com/youtube/v3"
MUSIC_CATEGORY_ID = "10"
_TOPIC_SUFFIX = re.compile(r"\s*-\s*Topic$", re.IGNORECASE)
_TITLE_SPLIT = re.compile(r"\s+[-–—]\s+")


def split_video_title(title: str, channel: str) -> Tuple[str, Tuple[str, ...]]:
    """Derive (track name, artists) from a video title and channel.

    "Artist - Song" titles are split; otherwise the channel (minus the
    auto-generated " - Topic" suffix) is taken as the artist.
    """
    parts = _TITLE_SPLIT.split(title, maxsplit=1)
    if len(parts) == 2 and parts[0] and parts[1]:
        return parts[1].strip(), (parts[0].strip(),)
    artist = _TOPIC_SUFFIX.sub("", channel or "").strip()
    return title.strip(), ((artist,) if artist else ())


class YouTubeAdapter(HttpAdapter):
    """YouTube Data API adapter."""

    default_api_base = API_BASE

    def __init__(self, credential, config: Dict[str, Any] | None = None, session=None):
        super().__init__(credential, config, session)
        self.privacy_status = self.config.get("privacy_status", "private")
        # (playlist_id, video_id) -> playlistItem id, for replace
        self._items: Dict[Tuple[str, str], str] = {}

    @property
    def platform(self) -> Platform:
        return Platform.YOUTUBE

    def fetch_tracks(self, playlist_id: str) -> List[Track]:
        tracks: List[Track] = []
        page_token: str | None = None
        while True:
            params: Dict[str, Any] = {"part": "snippet,contentDetails", "playlistId": playlist_id, "maxResults": 50}
            if page_token:
                params["pageToken"] = page_token
            data = self._get("/playlistItems", params=params, operation="fetch playlist items")
            for item in data.get("items", []):
                snippet = item.get("snippet") or {}
                video_id = (item.get("contentDetails") or {}).get("videoId")
                if not video_id or snippet.get("title") in ("Deleted video", "Private video"):
                    continue
                name, artists = split_video_title(snippet.get("title", ""), snippet.get("videoOwnerChannelTitle", ""))
                tracks.append(Track(
                    name=name,
                    position=len(tracks) + 1,
                    platform=Platform.YOUTUBE,
                    artists=artists,
                    external_id=video_id,
                ))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        return tracks

    def search_track(self, track: Track) -> Track | None:
        query = f"{track.name} {track.artist}".strip()
        data = self._get(
            "/search",
            params={
                "part": "snippet",
                "q": query,
                "type": "video",
                "videoCategoryId": MUSIC_CATEGORY_ID,
                "maxResults": 1,
            },
            operation="search video",
        )
        items = data.get("items") or []
        if not items:
            return None
        video_id = (items[0].get("id") or {}).get("videoId")
        if not video_id:
            return None
        snippet = items[0].get("snippet") or {}
        name, artists = split_video_title(snippet.get("title", ""), snippet.get("channelTitle", ""))
        return Track(
            name=name,
            position=track.position,
            platform=Platform.YOUTUBE,
            artists=artists,
            external_id=video_id,
        )

    def create_playlist(self, name: str, description: str) -> Playlist:
        data = self._post(
            "/playlists",
            params={"part": "snippet,status"},
            json={
                "snippet": {"title": name, "description": description},
                "status": {"privacyStatus": self.privacy_status},
            },
            operation="create playlist",
        )
        snippet = data.get("snippet") or {}
        return Playlist(
            id=data["id"],
            name=snippet.get("title", name),
            platform=Platform.YOUTUBE,
            track_count=0,
            description=snippet.get("description", description),
            url=f"https://music.youtube.com/playlist?list={data['id']}",
        )

    def _remove_existing(self, playlist_id: str, video_id: str) -> None:
        item_id = self._items.pop((playlist_id, video_id), None)
        if item_id:
            self._request("DELETE", "/playlistItems", params={"id": item_id}, operation="remove playlist item")

    def add_tracks(self, playlist_id: str, tracks: Sequence[Track], replace: bool = False) -> List[AddOutcome]:
        outcomes: List[AddOutcome] = []
        for track in tracks:
            try:
                if replace:
                    self._remove_existing(playlist_id, track.external_id)
                data = self._post(
                    "/playlistItems",
                    params={"part": "snippet"},
                    json={"snippet": {
                        "playlistId": playlist_id,
                        "resourceId": {"kind": "youtube#video", "videoId": track.external_id},
                    }},
                    operation="insert playlist item",
                )
            except (AuthError, QuotaError):
                raise
            except NotFoundError as e:
                outcomes.append(AddOutcome(track, AddStatus.UNAVAILABLE, str(e)))
                continue
            except TransientError as e:
                outcomes.append(AddOutcome(track, AddStatus.TRANSIENT, str(e)))
                continue
            except TransferError as e:
                outcomes.append(AddOutcome(track, AddStatus.UNAVAILABLE, str(e)))
                continue
            if data.get("id"):
                self._items[(playlist_id, track.external_id)] = data["id"]
            outcomes.append(AddOutcome(track, AddStatus.ADDED))
        return outcomes


__all__ = ["YouTubeAdapter", "split_video_title", "API_BASE"]
