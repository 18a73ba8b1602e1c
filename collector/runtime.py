"""Process-wide object graph shared by the HTTP app and the Celery tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from collector.connectors.http import SourceHttp
from collector.connectors.registry import SourceCatalog
from collector.repositories.store import DocumentStore
from collector.repositories.sql_store import SqlDocumentStore
from collector.services.orchestrator import CollectionOrchestrator
from collector.services.ranker_client import Ranker, RankerClient
from collector.services.rate_limiter import HostRateLimiter
from collector.services.sync_bridge import SyncBridge
from collector.settings import Settings, get_settings
from collector.utils.logging import get_logger
from recommender.fallback import FallbackScorer
from recommender.resolver import RecommendationResolver

logger = get_logger(__name__)


@dataclass
class Runtime:
    settings: Settings
    store: DocumentStore
    ranker: Ranker
    bridge: SyncBridge
    orchestrator: CollectionOrchestrator
    resolver: RecommendationResolver
    client: Optional[httpx.AsyncClient] = None

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None


def build_runtime(
    settings: Optional[Settings] = None,
    *,
    store: Optional[DocumentStore] = None,
    ranker: Optional[Ranker] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Runtime:
    """Wire every component from settings; tests pass their own store/ranker/client."""
    config = settings or get_settings()
    http_client = client or httpx.AsyncClient()
    limiter = HostRateLimiter(config.host_rate_per_second)
    http = SourceHttp(
        http_client,
        limiter,
        timeout_seconds=config.fetch_timeout_seconds,
        user_agent=config.feed_user_agent,
    )
    catalog = SourceCatalog(http, config)
    document_store = store if store is not None else SqlDocumentStore.from_dsn(config.storage_dsn)
    ranker_impl = ranker if ranker is not None else RankerClient(
        http_client,
        config.ranker_base_url,
        api_key=config.ranker_api_key.get_secret_value() if config.ranker_api_key else None,
        timeout_seconds=config.ranker_timeout_seconds,
    )
    bridge = SyncBridge(
        ranker_impl,
        document_store,
        page_size=config.sync_page_size,
        interaction_lookback_days=config.interaction_lookback_days,
    )
    orchestrator = CollectionOrchestrator(
        catalog.groups(),
        document_store,
        bridge,
        max_new_items=config.max_new_items_per_run,
        concurrency=config.fetch_concurrency,
        test_source_factory=catalog.test_source,
        test_source_names=sorted(catalog.test_aliases()),
    )
    fallback = FallbackScorer(
        document_store,
        lookback_days=config.fallback_lookback_days,
        pool_size=config.fallback_pool_size,
    )
    resolver = RecommendationResolver(
        ranker_impl,
        document_store,
        fallback,
        cache_ttl_seconds=config.cache_ttl_seconds,
        throttle_seconds=config.user_throttle_seconds,
    )
    logger.info(
        "runtime.ready",
        extra={"groups": orchestrator.group_names, "ranker": config.ranker_base_url},
    )
    return Runtime(
        settings=config,
        store=document_store,
        ranker=ranker_impl,
        bridge=bridge,
        orchestrator=orchestrator,
        resolver=resolver,
        client=http_client,
    )
