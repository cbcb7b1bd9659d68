"""YouTube Music provider package."""

from .client import YouTubeAdapter
from .provider import YouTubeProvider

__all__ = ["YouTubeAdapter", "YouTubeProvider"]
