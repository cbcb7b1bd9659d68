"""Track matching: candidate scoring strategies and the match resolver."""

from .resolver import MatchResolver
from .scoring import (
    MatchStrategy,
    ScoreBreakdown,
    ScoringConfig,
    ScoringStrategy,
    TrustSearchStrategy,
    build_strategy,
)

__all__ = [
    "MatchResolver",
    "MatchStrategy",
    "ScoreBreakdown",
    "ScoringConfig",
    "ScoringStrategy",
    "TrustSearchStrategy",
    "build_strategy",
]
