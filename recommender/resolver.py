"""Hybrid recommendation resolution: external ranker first, interest fallback second."""

from __future__ import annotations

from typing import List, Optional, Tuple

from collector.connectors.errors import RankerError, StorageError
from collector.repositories.store import DocumentStore
from collector.services.ranker_client import RankedCandidate, Ranker
from collector.utils.logging import get_logger

from .cache import Clock, TTLCache, UserThrottle
from .fallback import FallbackScorer
from .models import RecommendationItem, RecommendationResult, ResultSource
from .relevance import is_relevant

logger = get_logger(__name__)


class RateLimitedError(Exception):
    """Raised when the same user asks again inside the throttle window."""

    def __init__(self, user_id: str, retry_after: float) -> None:
        super().__init__(f"rate limit exceeded for {user_id}; retry in {retry_after:.2f}s")
        self.user_id = user_id
        self.retry_after = retry_after


class RecommendationResolver:
    """Resolves a ranked list for one user.

    Order of operations: cache, per-user throttle, ranker candidates (twice the
    requested count), storage lookup, interest filter, fallback backfill,
    truncate and cache. Any ranker failure or an empty candidate list hands the
    whole request to the fallback scorer; fallback results are not cached.
    """

    def __init__(
        self,
        ranker: Ranker,
        store: DocumentStore,
        fallback: FallbackScorer,
        *,
        cache_ttl_seconds: float = 300.0,
        throttle_seconds: float = 1.0,
        clock: Optional[Clock] = None,
    ) -> None:
        self._ranker = ranker
        self._store = store
        self._fallback = fallback
        self._cache: TTLCache[RecommendationResult] = TTLCache(cache_ttl_seconds, clock=clock)
        self._throttle = UserThrottle(throttle_seconds, clock=clock)

    async def resolve(self, user_id: str, count: int = 20) -> RecommendationResult:
        if not user_id:
            raise ValueError("user_id is required")
        if count < 1:
            raise ValueError("count must be >= 1")

        cached = self._cache.get(user_id, count)
        if cached is not None:
            logger.debug("recommend.cache_hit", extra={"user_id": user_id, "count": count})
            return cached.model_copy(update={"cached": True})

        retry_after = self._throttle.retry_after(user_id)
        if retry_after > 0:
            logger.warning("recommend.throttled", extra={"user_id": user_id, "retry_after": round(retry_after, 3)})
            raise RateLimitedError(user_id, retry_after)
        self._throttle.mark(user_id)

        try:
            candidates = await self._ranker.recommend(user_id, count * 2)
        except RankerError as exc:
            logger.warning("recommend.ranker_failed", extra={"user_id": user_id, "error": str(exc)})
            return await self._fallback.recommend(user_id, count)
        if not candidates:
            logger.info("recommend.ranker_empty", extra={"user_id": user_id})
            return await self._fallback.recommend(user_id, count)

        try:
            items, interests = await self._resolve_candidates(user_id, candidates)
        except StorageError as exc:
            logger.error("recommend.lookup_failed", extra={"user_id": user_id, "error": str(exc)})
            return await self._fallback.recommend(user_id, count)

        if len(items) < count and interests:
            shortfall = count - len(items)
            backfill = await self._fallback.recommend(
                user_id, shortfall, exclude={item.content_id for item in items}
            )
            items.extend(backfill.items)
            logger.info(
                "recommend.backfilled",
                extra={"user_id": user_id, "shortfall": shortfall, "added": len(backfill.items)},
            )

        result = RecommendationResult(items=items[:count], source=ResultSource.RANKER)
        self._cache.set(user_id, count, result)
        logger.info(
            "recommend.resolved",
            extra={"user_id": user_id, "candidates": len(candidates), "returned": len(result.items)},
        )
        return result

    async def _resolve_candidates(
        self, user_id: str, candidates: List[RankedCandidate]
    ) -> Tuple[List[RecommendationItem], List[str]]:
        profile = await self._store.get_user(user_id)
        interests = profile.normalized_interests if profile else []
        records = await self._store.get_many([c.id for c in candidates])
        items: List[RecommendationItem] = []
        for candidate, record in zip(candidates, records):
            if record is None:
                continue
            if not is_relevant(record.tags, interests):
                continue
            items.append(RecommendationItem.from_record(record, candidate.score))
        return items, interests

    def invalidate(self, user_id: str) -> int:
        """Forget cached results and the throttle timestamp of one user."""
        dropped = self._cache.clear(user_id)
        self._throttle.clear(user_id)
        logger.info("recommend.invalidated", extra={"user_id": user_id, "entries": dropped})
        return dropped
