"""Spotify provider implementation."""

from __future__ import annotations
from typing import Any, Dict
from ..base import Credential, Platform, Provider
from .client import API_BASE, SpotifyAdapter


class SpotifyProvider(Provider):
    """Builds Spotify adapters from the ``providers.spotify`` config section."""

    @property
    def platform(self) -> Platform:
        return Platform.SPOTIFY

    def create_adapter(self, credential: Credential, config: Dict[str, Any] | None = None) -> SpotifyAdapter:
        return SpotifyAdapter(credential, config)

    def get_default_config(self) -> Dict[str, Any]:
        return {
            "api_base": API_BASE,
            "requests_per_second": 10,
            "timeout_seconds": 30,
        }


__all__ = ["SpotifyProvider"]
