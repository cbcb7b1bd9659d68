"""Provider abstraction public API.

Spotify, YouTube Music and Apple Music are implemented over their Web
APIs; Amazon Music is registered as unsupported. Additional providers can
register by using register_provider() with a Provider instance.
"""

from .base import (
    Platform,
    Track,
    Playlist,
    Credential,
    AddStatus,
    AddOutcome,
    PlatformAdapter,
    Provider,
    register_provider,
    get_provider_instance,
    available_provider_instances,
)

from .spotify import SpotifyProvider
from .youtube import YouTubeProvider
from .apple import AppleMusicProvider
from .amazon import AmazonMusicProvider

register_provider(SpotifyProvider())
register_provider(YouTubeProvider())
register_provider(AppleMusicProvider())
register_provider(AmazonMusicProvider())


__all__ = [
    "Platform",
    "Track",
    "Playlist",
    "Credential",
    "AddStatus",
    "AddOutcome",
    "PlatformAdapter",
    "Provider",
    "register_provider",
    "get_provider_instance",
    "available_provider_instances",
]
