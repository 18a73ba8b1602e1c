"""Celery tasks for the scheduled collection run and the full ranker sync."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

from celery import shared_task

from collector.runtime import Runtime, build_runtime
from collector.utils.logging import get_logger

logger = get_logger(__name__)

# Runtime factory is pluggable for tests; it must return a Runtime.
RUNTIME_FACTORY: Callable[[], Runtime] = build_runtime


async def _with_runtime(work: Callable[[Runtime], Any]) -> Any:
    runtime = RUNTIME_FACTORY()
    try:
        return await work(runtime)
    finally:
        await runtime.aclose()


def collect_core(sources: Optional[List[str]] = None, dry_run: bool = False) -> Dict[str, Any]:
    """Run one collection and return the camelCase report; test-friendly."""

    async def work(runtime: Runtime) -> Dict[str, Any]:
        report = await runtime.orchestrator.collect_all(sources, dry_run=dry_run)
        return report.model_dump(mode="json", by_alias=True, exclude={"items"})

    result = asyncio.run(_with_runtime(work))
    logger.info("task.collect.done", extra={"status": result["status"], "new_items": result["newItemsAdded"]})
    return result


def full_sync_core() -> Dict[str, Any]:
    async def work(runtime: Runtime) -> Dict[str, Any]:
        return await runtime.bridge.run_full_sync()

    return asyncio.run(_with_runtime(work))


@shared_task(name="collector.tasks.collect.collect_all_content")
def collect_all_content(sources: Optional[List[str]] = None, dry_run: bool = False) -> Dict[str, Any]:  # pragma: no cover - wrapper
    return collect_core(sources, dry_run)


@shared_task(name="collector.tasks.collect.run_full_sync")
def run_full_sync() -> Dict[str, Any]:  # pragma: no cover - wrapper
    return full_sync_core()
