"""Typed configuration dataclasses for playlist-transfer-engine.

Mirror the dict returned by ``load_config`` section by section so callers can
choose between ``cfg['transfer']['batch_size']`` and
``AppConfig.from_dict(cfg).transfer.batch_size``.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict, fields
from typing import Dict, Any


def _known(cls, data: Dict[str, Any] | None) -> Dict[str, Any]:
    """Keep only keys the dataclass declares (env vars may add stray ones)."""
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in (data or {}).items() if k in names}


@dataclass
class TransferConfig:
    """Per-job defaults; request options override them."""
    conflict_resolution: str = "skip"  # skip | replace | ask
    batch_size: int = 50
    retry_attempts: int = 3
    retry_base_delay: float = 1.0  # seconds

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MatchingConfig:
    """Track matching configuration (aligned with _DEFAULTS)."""
    strategy: str = "scoring"
    min_score: float = 0.6  # 0.0-1.0 scale
    title_weight: float = 0.55
    artist_weight: float = 0.35
    album_weight: float = 0.10
    duration_tolerance: int = 10  # seconds

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProviderConfig:
    """Settings shared by every platform adapter."""
    api_base: str | None = None
    requests_per_second: float = 10
    timeout_seconds: float = 30

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class YouTubeConfig(ProviderConfig):
    requests_per_second: float = 5
    privacy_status: str = "private"


@dataclass
class AppleConfig(ProviderConfig):
    storefront: str = "us"
    developer_token: str | None = None


@dataclass
class ProvidersConfig:
    """Configuration for all providers."""
    spotify: ProviderConfig = field(default_factory=ProviderConfig)
    youtube: YouTubeConfig = field(default_factory=YouTubeConfig)
    apple: AppleConfig = field(default_factory=AppleConfig)
    amazon: ProviderConfig = field(default_factory=ProviderConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spotify": self.spotify.to_dict(),
            "youtube": self.youtube.to_dict(),
            "apple": self.apple.to_dict(),
            "amazon": self.amazon.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> ProvidersConfig:
        data = data or {}
        return cls(
            spotify=ProviderConfig(**_known(ProviderConfig, data.get("spotify"))),
            youtube=YouTubeConfig(**_known(YouTubeConfig, data.get("youtube"))),
            apple=AppleConfig(**_known(AppleConfig, data.get("apple"))),
            amazon=ProviderConfig(**_known(ProviderConfig, data.get("amazon"))),
        )


@dataclass
class HistoryConfig:
    """Transfer history storage."""
    path: str = "data/history.db"
    max_records: int = 50

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AppConfig:
    """Root application configuration with all subsections."""
    log_level: str = "INFO"
    transfer: TransferConfig = field(default_factory=TransferConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the nested dict shape produced by load_config."""
        return {
            "log_level": self.log_level,
            "transfer": self.transfer.to_dict(),
            "matching": self.matching.to_dict(),
            "providers": self.providers.to_dict(),
            "history": self.history.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AppConfig:
        """Create typed config from dictionary.

        Args:
            data: Dictionary config (from load_config)

        Returns:
            Typed AppConfig instance
        """
        return cls(
            log_level=data.get("log_level", "INFO"),
            transfer=TransferConfig(**_known(TransferConfig, data.get("transfer"))),
            matching=MatchingConfig(**_known(MatchingConfig, data.get("matching"))),
            providers=ProvidersConfig.from_dict(data.get("providers")),
            history=HistoryConfig(**_known(HistoryConfig, data.get("history"))),
        )


__all__ = [
    "AppConfig",
    "TransferConfig",
    "MatchingConfig",
    "ProviderConfig",
    "YouTubeConfig",
    "AppleConfig",
    "ProvidersConfig",
    "HistoryConfig",
]
