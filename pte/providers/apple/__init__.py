"""Apple Music provider package."""

from .client import AppleMusicAdapter
from .provider import AppleMusicProvider

__all__ = ["AppleMusicAdapter", "AppleMusicProvider"]
