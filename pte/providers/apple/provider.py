"""Apple Music provider implementation."""

from __future__ import annotations
from typing import Any, Dict
from ..base import Credential, Platform, Provider
from .client import API_BASE, AppleMusicAdapter


class AppleMusicProvider(Provider):
    """Builds Apple Music adapters from the ``providers.apple`` config section."""

    @property
    def platform(self) -> Platform:
        return Platform.APPLE

    def create_adapter(self, credential: Credential, config: Dict[str, Any] | None = None) -> AppleMusicAdapter:
        return AppleMusicAdapter(credential, config)

    def get_default_config(self) -> Dict[str, Any]:
        return {
            "api_base": API_BASE,
            "requests_per_second": 10,
            "timeout_seconds": 30,
            "storefront": "us",
            "developer_token": None,
        }


__all__ = ["AppleMusicProvider"]
