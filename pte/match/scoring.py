"""Scoring-based acceptance of search candidates.

A platform search returns its best guess for a source track; the strategy
here decides whether that guess is actually the same recording. Strategies
are pure: identical inputs give identical breakdowns and neither track is
modified.

Design goals:
- Weighted similarity over title / artist / album with fuzzy ratios
- Penalties for duration drift and live/remix variant mismatch
- Transparent breakdown (notes) for diagnostics
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional
import re
from rapidfuzz import fuzz

from ..providers.base import Track
from ..utils.normalization import normalize_artists, normalize_token


@dataclass
class ScoreBreakdown:
    score: float  # 0.0-1.0
    accepted: bool
    title_ratio: Optional[float]
    artist_ratio: Optional[float]
    album_ratio: Optional[float]
    duration_diff: Optional[int]
    notes: List[str] = field(default_factory=list)


@dataclass
class ScoringConfig:
    """Weights and thresholds for ``ScoringStrategy``.

    Components missing on either side (unknown artists, empty album) drop
    out of the weighted average instead of counting as mismatches.
    """
    title_weight: float = 0.55
    artist_weight: float = 0.35
    album_weight: float = 0.10
    min_score: float = 0.6
    # title must clear this on its own, whatever the other components say
    min_title_ratio: float = 0.5
    duration_tolerance: int = 10  # seconds
    penalty_duration_far: float = 0.15
    penalty_variant_mismatch: float = 0.1


_VARIANT_PATTERN = re.compile(
    r"\b(?:live|remix|acoustic|instrumental|karaoke|cover|unplugged|sped\s*up|slowed)\b",
    re.IGNORECASE,
)


def _has_variant(title: str) -> bool:
    return bool(title) and bool(_VARIANT_PATTERN.search(title))


def parse_duration(value: str | None) -> Optional[int]:
    """Parse 'h:mm:ss' / 'm:ss' / plain seconds into seconds; None if unparseable."""
    if not value:
        return None
    parts = value.strip().split(":")
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return None
    seconds = 0
    for n in numbers:
        seconds = seconds * 60 + n
    return seconds


def _ratio(a: str, b: str) -> float:
    return fuzz.token_set_ratio(a, b) / 100.0


def _norm_or_raw(value: str) -> str:
    # Normalization can strip a title down to nothing ("The The"); fall back
    return normalize_token(value) or value.lower().strip()


class MatchStrategy(ABC):
    """Decides whether a search candidate is equivalent to a source track."""

    @abstractmethod
    def evaluate(self, source: Track, candidate: Track) -> ScoreBreakdown:
        """Score ``candidate`` against ``source``."""

    @abstractmethod
    def get_name(self) -> str:
        """Return the strategy name for logging."""


class TrustSearchStrategy(MatchStrategy):
    """Accept whatever the platform search returned."""

    def evaluate(self, source: Track, candidate: Track) -> ScoreBreakdown:
        return ScoreBreakdown(1.0, True, None, None, None, None, ["search_trusted"])

    def get_name(self) -> str:
        return "search"


class ScoringStrategy(MatchStrategy):
    """Fuzzy weighted scoring using rapidfuzz token-set ratios."""

    def __init__(self, cfg: ScoringConfig | None = None):
        self.cfg = cfg or ScoringConfig()

    def get_name(self) -> str:
        return "scoring"

    def evaluate(self, source: Track, candidate: Track) -> ScoreBreakdown:
        cfg = self.cfg
        notes: List[str] = []
        weighted = 0.0
        total_weight = 0.0

        title_ratio = _ratio(_norm_or_raw(source.name), _norm_or_raw(candidate.name))
        weighted += title_ratio * cfg.title_weight
        total_weight += cfg.title_weight
        notes.append(f"title:{title_ratio:.2f}")

        artist_ratio = None
        s_artist = normalize_artists(source.artists)
        c_artist = normalize_artists(candidate.artists)
        if s_artist and c_artist:
            artist_ratio = _ratio(s_artist, c_artist)
            # Video titles often embed the artist ("Artist - Song"); accept it there too
            if artist_ratio < 1.0:
                in_title = _ratio(s_artist, normalize_token(f"{candidate.name} {candidate.artist}"))
                if in_title > artist_ratio:
                    artist_ratio = in_title
                    notes.append("artist_in_title")
            weighted += artist_ratio * cfg.artist_weight
            total_weight += cfg.artist_weight
            notes.append(f"artist:{artist_ratio:.2f}")
        else:
            notes.append("artist_unknown")

        album_ratio = None
        if source.album and candidate.album:
            album_ratio = _ratio(_norm_or_raw(source.album), _norm_or_raw(candidate.album))
            weighted += album_ratio * cfg.album_weight
            total_weight += cfg.album_weight
            notes.append(f"album:{album_ratio:.2f}")

        score = weighted / total_weight if total_weight else 0.0

        duration_diff = None
        s_dur = parse_duration(source.duration)
        c_dur = parse_duration(candidate.duration)
        if s_dur is not None and c_dur is not None:
            duration_diff = abs(s_dur - c_dur)
            if duration_diff > cfg.duration_tolerance:
                score -= cfg.penalty_duration_far
                notes.append(f"penalty_duration_far:{duration_diff}")

        if _has_variant(source.name) != _has_variant(candidate.name):
            score -= cfg.penalty_variant_mismatch
            notes.append("penalty_variant_mismatch")

        score = max(0.0, min(1.0, score))
        accepted = score >= cfg.min_score and title_ratio >= cfg.min_title_ratio
        if title_ratio < cfg.min_title_ratio:
            notes.append("title_below_minimum")
        return ScoreBreakdown(
            score=score,
            accepted=accepted,
            title_ratio=title_ratio,
            artist_ratio=artist_ratio,
            album_ratio=album_ratio,
            duration_diff=duration_diff,
            notes=notes,
        )


def build_strategy(matching_cfg: dict | None) -> MatchStrategy:
    """Build the strategy named by the ``matching`` config section."""
    matching_cfg = matching_cfg or {}
    name = matching_cfg.get("strategy", "scoring")
    if name == "search":
        return TrustSearchStrategy()
    if name != "scoring":
        raise ValueError(f"Unknown matching strategy: {name}")
    defaults = ScoringConfig()
    return ScoringStrategy(ScoringConfig(
        title_weight=float(matching_cfg.get("title_weight", defaults.title_weight)),
        artist_weight=float(matching_cfg.get("artist_weight", defaults.artist_weight)),
        album_weight=float(matching_cfg.get("album_weight", defaults.album_weight)),
        min_score=float(matching_cfg.get("min_score", defaults.min_score)),
        duration_tolerance=int(matching_cfg.get("duration_tolerance", defaults.duration_tolerance)),
    ))


__all__ = [
    "ScoreBreakdown",
    "ScoringConfig",
    "MatchStrategy",
    "ScoringStrategy",
    "TrustSearchStrategy",
    "build_strategy",
    "parse_duration",
]
