"""YouTube Music provider implementation."""

from __future__ import annotations
from typing import Any, Dict
from ..base import Credential, Platform, Provider
from .client import API_BASE, YouTubeAdapter


class YouTubeProvider(Provider):
    """Builds YouTube adapters from the ``providers.youtube`` config section."""

    @property
    def platform(self) -> Platform:
        return Platform.YOUTUBE

    def create_adapter(self, credential: Credential, config: Dict[str, Any] | None = None) -> YouTubeAdapter:
        return YouTubeAdapter(credential, config)

    def get_default_config(self) -> Dict[str, Any]:
        return {
            "api_base": API_BASE,
            "requests_per_second": 5,
            "timeout_seconds": 30,
            "privacy_status": "private",
        }

    def validate_config(self, config: Dict[str, Any]) -> None:
        super().validate_config(config)
        privacy = config.get("privacy_status", "private")
        if privacy not in ("private", "unlisted", "public"):
            raise ValueError(f"youtube: privacy_status must be private, unlisted or public, got {privacy!r}")


__all__ = ["YouTubeProvider"]
