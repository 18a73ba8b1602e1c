from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from collector.connectors.errors import CollectionError, StorageError
from collector.connectors.registry import GROUP_NAMES
from collector.models.domain import FeedbackEvent
from collector.runtime import Runtime
from collector.utils.logging import get_logger
from recommender.resolver import RateLimitedError

from .models import (
    CollectRequest,
    ContentCount,
    HealthResponse,
    InteractionRequest,
    InteractionResponse,
    InvalidateRequest,
    InvalidateResponse,
    SyncRequest,
)

logger = get_logger(__name__)

router = APIRouter()


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


RuntimeDep = Annotated[Runtime, Depends(get_runtime)]


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_route(runtime: RuntimeDep) -> HealthResponse:
    try:
        await runtime.store.count()
        storage_ok = True
    except StorageError as exc:
        logger.warning("api.health.storage_failed", extra={"error": str(exc)})
        storage_ok = False
    ranker_ok = await runtime.ranker.health()
    return HealthResponse(
        status="healthy" if storage_ok and ranker_ok else "degraded",
        storage=storage_ok,
        ranker=ranker_ok,
        timestamp=datetime.now(timezone.utc),
    )


@router.post("/collect", tags=["collection"])
async def collect_route(payload: CollectRequest, runtime: RuntimeDep) -> Dict[str, Any]:
    if payload.sources:
        unknown = sorted({s.strip().lower() for s in payload.sources} - set(GROUP_NAMES))
        if unknown:
            raise HTTPException(
                status_code=400,
                detail={"error": "unknown_sources", "unknown": unknown, "available": list(GROUP_NAMES)},
            )
    try:
        report = await runtime.orchestrator.collect_all(payload.sources, dry_run=payload.dry)
    except CollectionError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    exclude = None if payload.dry else {"items"}
    return report.model_dump(mode="json", by_alias=True, exclude=exclude)


@router.get("/collect/test", tags=["collection"])
async def collect_test_route(
    runtime: RuntimeDep,
    source: Annotated[Optional[str], Query()] = None,
) -> Dict[str, Any]:
    if not source:
        raise HTTPException(status_code=400, detail="source 파라미터가 필요합니다.")
    report = await runtime.orchestrator.test_source(source)
    if report.source is None:
        raise HTTPException(status_code=404, detail=report.error)
    return report.model_dump(mode="json", by_alias=True)


@router.get("/recommendations", tags=["recommendations"])
async def recommendations_route(
    runtime: RuntimeDep,
    uid: Annotated[Optional[str], Query()] = None,
    count: Annotated[int, Query(ge=1, le=100)] = 20,
) -> Any:
    if not uid:
        raise HTTPException(status_code=400, detail="uid 파라미터가 필요합니다.")
    try:
        result = await runtime.resolver.resolve(uid, count)
    except RateLimitedError as exc:
        return JSONResponse(
            status_code=429,
            content={"error": "rate_limit_exceeded", "retryAfter": round(exc.retry_after, 3)},
            headers={"Retry-After": str(max(1, round(exc.retry_after)))},
        )
    except StorageError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return result.model_dump(mode="json", by_alias=True)


@router.post("/invalidate-cache", response_model=InvalidateResponse, tags=["recommendations"])
async def invalidate_cache_route(payload: InvalidateRequest, runtime: RuntimeDep) -> InvalidateResponse:
    cleared = runtime.resolver.invalidate(payload.uid)
    synced = await runtime.bridge.sync_user(payload.uid)
    return InvalidateResponse(success=True, uid=payload.uid, cleared=cleared, user_synced=synced)


@router.post("/interaction/sync", response_model=InteractionResponse, tags=["recommendations"])
async def interaction_sync_route(payload: InteractionRequest, runtime: RuntimeDep) -> InteractionResponse:
    event = FeedbackEvent(
        type=payload.type,
        user_id=payload.user_id,
        item_id=payload.content_id,
        timestamp=datetime.now(timezone.utc),
    )
    pushed = await runtime.bridge.push_feedback_now(event)
    runtime.resolver.invalidate(payload.user_id)
    return InteractionResponse(success=pushed, user_id=payload.user_id, content_id=payload.content_id)


@router.post("/sync-store", tags=["sync"])
async def sync_store_route(payload: SyncRequest, runtime: RuntimeDep) -> Dict[str, Any]:
    bridge = runtime.bridge
    if payload.type == "items":
        return await bridge.sync_all_items()
    if payload.type == "users":
        return await bridge.sync_all_users()
    if payload.type == "interactions":
        return await bridge.sync_recent_interactions()
    return await bridge.run_full_sync()


@router.get("/content/count", response_model=ContentCount, tags=["collection"])
async def content_count_route(runtime: RuntimeDep) -> ContentCount:
    try:
        return ContentCount(count=await runtime.store.count())
    except StorageError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
