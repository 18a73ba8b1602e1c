"""Interest-based scorer used when the ranker is unavailable or under-delivers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Collection, Iterable, List, Optional, Sequence

from collector.models.domain import ContentRecord, ContentType
from collector.repositories.store import DocumentStore
from collector.utils.logging import get_logger

from .models import RecommendationItem, RecommendationResult, ResultSource
from .relevance import count_matches, normalize_terms

logger = get_logger(__name__)

EXACT_WEIGHT = 10
PARTIAL_WEIGHT = 5
RECENCY_MAX = 5.0
RECENCY_DECAY_DAYS = 7.0
IMPORTANCE_BOOST = 3.0
POEM_FACTOR = 0.8


def score_record(record: ContentRecord, interests: Iterable[str], *, now: datetime) -> Optional[float]:
    """Score one candidate, or ``None`` when it matches no interest at all."""
    exact, partial = count_matches(record.tags, interests)
    if exact == 0 and partial == 0:
        return None
    days = max(0.0, (now - record.published_at).total_seconds() / 86400)
    recency = max(0.0, RECENCY_MAX - days / RECENCY_DECAY_DAYS)
    importance = IMPORTANCE_BOOST if record.important else 0.0
    factor = POEM_FACTOR if record.content_type is ContentType.POEM else 1.0
    return (exact * EXACT_WEIGHT + partial * PARTIAL_WEIGHT + recency + importance) * factor


def score_candidates(
    interests: Sequence[str],
    pool: Sequence[ContentRecord],
    count: int,
    *,
    now: Optional[datetime] = None,
    exclude: Collection[str] = (),
) -> List[RecommendationItem]:
    """Rank ``pool`` against ``interests``; equal scores keep pool order."""
    current = now or datetime.now(timezone.utc)
    terms = normalize_terms(interests)
    scored: List[RecommendationItem] = []
    for record in pool:
        if record.id in exclude:
            continue
        score = score_record(record, terms, now=current)
        if score is not None:
            scored.append(RecommendationItem.from_record(record, score))
    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[: max(count, 0)]


class FallbackScorer:
    def __init__(
        self,
        store: DocumentStore,
        *,
        lookback_days: int = 120,
        pool_size: int = 300,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._lookback = timedelta(days=lookback_days)
        self._pool_size = pool_size
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def recommend(self, user_id: str, count: int, *, exclude: Collection[str] = ()) -> RecommendationResult:
        profile = await self._store.get_user(user_id)
        if profile is None:
            return RecommendationResult(source=ResultSource.FALLBACK, reason="user_not_found")
        interests = profile.normalized_interests
        if not interests:
            return RecommendationResult(source=ResultSource.FALLBACK, reason="no_interests")

        now = self._now()
        pool = await self._store.recent_content(now - self._lookback, self._pool_size)
        if not pool:
            return RecommendationResult(source=ResultSource.FALLBACK, reason="no_content")

        items = score_candidates(interests, pool, count, now=now, exclude=exclude)
        logger.info(
            "recommend.fallback",
            extra={"user_id": user_id, "pool": len(pool), "returned": len(items), "requested": count},
        )
        return RecommendationResult(items=items, source=ResultSource.FALLBACK)
