"""Provider abstraction layer.

This module defines provider-neutral domain models and the uniform adapter
interface every music service implements, so the transfer engine never
sees a vendor's wire format.

Key abstractions:
- Domain models: Platform, Track, Playlist, Credential, AddOutcome
- PlatformAdapter: the four-operation capability set (fetch, search,
  create, add) bound to one platform and one credential
- Provider: factory that validates config and builds adapters
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple
import time

from ..errors import AuthError, ValidationError

# ---------------- Domain Models -----------------


class Platform(str, Enum):
    SPOTIFY = "spotify"
    APPLE = "apple"
    YOUTUBE = "youtube"
    AMAZON = "amazon"

    @classmethod
    def parse(cls, value: "str | Platform") -> "Platform":
        if isinstance(value, Platform):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Unsupported platform: {value}") from None

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Platform.SPOTIFY: "Spotify",
    Platform.APPLE: "Apple Music",
    Platform.YOUTUBE: "YouTube Music",
    Platform.AMAZON: "Amazon Music",
}


@dataclass(frozen=True)
class Track:
    """A track as seen on one platform.

    ``position`` is 1-based and defines transfer order within a playlist.
    ``external_id`` is only present once the track is known on a platform
    (always for fetched/searched tracks, never for scraped source rows that
    lacked one). Tracks are never mutated; resolution produces a new value.
    """
    name: str
    position: int
    platform: Platform
    artists: Tuple[str, ...] = ()
    album: str = ""
    duration: str | None = None
    external_id: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "artists", tuple(a for a in self.artists if a))
        object.__setattr__(self, "platform", Platform.parse(self.platform))

    @property
    def artist(self) -> str:
        """Artists joined for display and search queries ('' when unknown)."""
        return ", ".join(self.artists)

    @property
    def label(self) -> str:
        return f"{self.name} by {self.artist}" if self.artists else self.name

    def with_position(self, position: int) -> Track:
        return replace(self, position=position)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position,
            "platform": self.platform.value,
            "artists": list(self.artists),
            "album": self.album,
            "duration": self.duration,
            "external_id": self.external_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Track:
        return cls(
            name=data["name"],
            position=int(data["position"]),
            platform=Platform.parse(data["platform"]),
            artists=tuple(data.get("artists") or ()),
            album=data.get("album") or "",
            duration=data.get("duration"),
            external_id=data.get("external_id"),
        )


@dataclass(frozen=True)
class Playlist:
    """Playlist metadata plus (optionally) its ordered tracks.

    ``track_count`` is None when unknown (an id-only reference that still has
    to be fetched). When ``tracks`` is populated it must equal their number;
    a missing count is filled in from the tracks.
    """
    id: str
    name: str
    platform: Platform
    description: str = ""
    track_count: int | None = None
    url: str = ""
    tracks: Tuple[Track, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "tracks", tuple(self.tracks))
        object.__setattr__(self, "platform", Platform.parse(self.platform))
        if self.tracks:
            if self.track_count is None:
                object.__setattr__(self, "track_count", len(self.tracks))
            elif self.track_count != len(self.tracks):
                raise ValidationError(
                    f"Playlist '{self.name}' declares {self.track_count} tracks but carries {len(self.tracks)}"
                )

    def ordered_tracks(self) -> List[Track]:
        return sorted(self.tracks, key=lambda t: t.position)

    def to_dict(self, include_tracks: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "platform": self.platform.value,
            "description": self.description,
            "track_count": self.track_count,
            "url": self.url,
        }
        if include_tracks:
            data["tracks"] = [t.to_dict() for t in self.tracks]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Playlist:
        return cls(
            id=data["id"],
            name=data["name"],
            platform=Platform.parse(data["platform"]),
            description=data.get("description") or "",
            track_count=None if data.get("track_count") is None else int(data["track_count"]),
            url=data.get("url") or "",
            tracks=tuple(Track.from_dict(t) for t in data.get("tracks") or ()),
        )


@dataclass(frozen=True)
class Credential:
    """Opaque access token for one platform. Acquisition happens elsewhere."""
    access_token: str
    expires_at: float | None = None  # epoch seconds; None = never expires

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (time.time() if now is None else now) >= self.expires_at


class AddStatus(str, Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"
    UNAVAILABLE = "unavailable"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class AddOutcome:
    """Per-track result of an ``add_tracks`` call."""
    track: Track
    status: AddStatus
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is AddStatus.ADDED


# ---------------- Platform Adapter -----------------


class PlatformAdapter(ABC):
    """Uniform capability set over one platform and one credential.

    Implementations raise the taxonomy in ``pte.errors``: ``AuthError`` for a
    bad credential, ``NotFoundError`` for an absent playlist, ``QuotaError``
    for platform limits and ``TransientError`` for network/5xx conditions.
    """

    def __init__(self, credential: Credential, config: Dict[str, Any] | None = None):
        self.credential = credential
        self.config = dict(config or {})

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """Platform this adapter talks to."""

    def ensure_credential(self) -> None:
        """Reject an expired credential before any request goes out."""
        if self.credential.is_expired():
            raise AuthError(f"{self.platform.display_name} credential expired")

    @abstractmethod
    def fetch_tracks(self, playlist_id: str) -> List[Track]:
        """Return the playlist's tracks in playlist order (positions 1..n)."""

    @abstractmethod
    def search_track(self, track: Track) -> Track | None:
        """Return the best equivalent of ``track`` on this platform, or None.

        None means "no equivalent exists" and is not an error.
        """

    @abstractmethod
    def create_playlist(self, name: str, description: str) -> Playlist:
        """Create an empty playlist owned by the credential's user."""

    @abstractmethod
    def add_tracks(self, playlist_id: str, tracks: Sequence[Track], replace: bool = False) -> List[AddOutcome]:
        """Append ``tracks`` in order and report one outcome per track.

        Per-track rejections (duplicate, region) are outcomes, not
        exceptions. With ``replace`` the adapter overwrites existing
        occurrences instead of reporting them as duplicates.
        """


# ---------------- Provider Factory -----------------


class Provider(ABC):
    """Builds adapters for one platform from configuration.

    Example:
        provider = get_provider_instance('spotify')
        provider.validate_config(config['providers']['spotify'])
        adapter = provider.create_adapter(credential, config['providers']['spotify'])
    """

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """Platform served by this provider."""

    @property
    def name(self) -> str:
        return self.platform.value

    @abstractmethod
    def create_adapter(self, credential: Credential, config: Dict[str, Any] | None = None) -> PlatformAdapter:
        """Create an adapter bound to ``credential``."""

    @abstractmethod
    def get_default_config(self) -> Dict[str, Any]:
        """Default provider configuration values."""

    def validate_config(self, config: Dict[str, Any]) -> None:
        """Validate provider configuration.

        Raises:
            ValueError: If a value is out of range
        """
        rps = config.get("requests_per_second", 10)
        if not isinstance(rps, (int, float)) or rps <= 0:
            raise ValueError(f"{self.name}: requests_per_second must be positive, got {rps!r}")
        timeout = config.get("timeout_seconds", 30)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError(f"{self.name}: timeout_seconds must be positive, got {timeout!r}")


# ---------------- Provider instance registry -----------------

_provider_instances: dict[str, Provider] = {}


def register_provider(provider: Provider) -> None:
    """Register a provider instance under its platform name."""
    _provider_instances[provider.name] = provider


def get_provider_instance(name: "str | Platform") -> Provider:
    """Get registered provider instance by platform.

    Raises:
        KeyError: If provider not registered
    """
    key = name.value if isinstance(name, Platform) else str(name).lower()
    return _provider_instances[key]


def available_provider_instances() -> list[str]:
    """Get list of available provider instance names."""
    return sorted(_provider_instances.keys())


__all__ = [
    'Platform', 'Track', 'Playlist', 'Credential', 'AddStatus', 'AddOutcome',
    'PlatformAdapter', 'Provider',
    'register_provider', 'get_provider_instance', 'available_provider_instances',
]
