"""Recommendation resolution on top of the external ranker with an interest fallback."""

from .fallback import FallbackScorer, score_candidates  # noqa: F401
from .models import RecommendationItem, RecommendationResult, ResultSource  # noqa: F401
from .resolver import RateLimitedError, RecommendationResolver  # noqa: F401

__all__ = [
    "FallbackScorer",
    "RateLimitedError",
    "RecommendationItem",
    "RecommendationResolver",
    "RecommendationResult",
    "ResultSource",
    "score_candidates",
]
