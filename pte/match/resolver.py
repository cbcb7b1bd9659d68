"""Resolve source tracks to equivalent tracks on the target platform."""
from __future__ import annotations
import logging

from ..errors import NotFoundError, TransferError, is_fatal
from ..providers.base import Track
from ..services.models import JobError, MatchResult, Phase
from ..services.session import AdapterSession
from .scoring import MatchStrategy, ScoringStrategy

logger = logging.getLogger(__name__)


class MatchResolver:
    """Turns one source ``Track`` into zero-or-one target ``Track``.

    The search goes through the target session (rate limited, retried).
    Outcomes:
    - search returns nothing, or the candidate is rejected by the strategy:
      ``found=False`` with no error
    - search failed (transient retries exhausted, or a per-request error):
      ``found=False`` with the error attached
    - any other failure (auth, quota, unsupported) propagates; it is not a
      per-track condition

    The resolved match is a new ``Track`` carrying the source position so
    insertion keeps the original order.
    """

    def __init__(self, strategy: MatchStrategy | None = None):
        self.strategy = strategy or ScoringStrategy()

    def resolve(self, track: Track, target: AdapterSession) -> MatchResult:
        try:
            candidate = target.search_track(track)
        except NotFoundError:
            candidate = None
        except TransferError as e:
            if is_fatal(e):
                raise
            logger.warning(f"Search failed for '{track.label}': {e}")
            return MatchResult(track, False, error=JobError.from_exception(Phase.MATCHING, e, track))

        if candidate is None:
            logger.debug(f"No candidate on {target.platform.value} for '{track.label}'")
            return MatchResult(track, False)
        if not candidate.external_id:
            logger.debug(f"Candidate for '{track.label}' has no {target.platform.value} id; ignoring")
            return MatchResult(track, False)

        breakdown = self.strategy.evaluate(track, candidate)
        if not breakdown.accepted:
            logger.debug(
                f"Rejected '{candidate.label}' for '{track.label}' "
                f"(score={breakdown.score:.2f} {' '.join(breakdown.notes)})"
            )
            return MatchResult(track, False, score=breakdown.score)

        match = candidate if candidate.position == track.position else candidate.with_position(track.position)
        logger.debug(f"Matched '{track.label}' -> '{match.label}' ({breakdown.score:.2f})")
        return MatchResult(track, True, match=match, score=breakdown.score)


__all__ = ["MatchResolver"]
