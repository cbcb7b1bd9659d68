"""Spotify provider package."""

from .client import SpotifyAdapter
from .provider import SpotifyProvider

__all__ = ["SpotifyAdapter", "SpotifyProvider"]
