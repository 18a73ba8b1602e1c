"""Retry-with-backoff for calls that may hit 429/5xx."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from collector.connectors.errors import RetriesExhaustedError, TransientError
from collector.utils.logging import get_logger

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[None]]

logger = get_logger(__name__)


def _log_backoff(label: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.info(
            "retry.backoff",
            extra={
                "label": label,
                "attempt": state.attempt_number,
                "max_attempts": max_attempts,
                "delay": state.next_action.sleep if state.next_action else None,
                "status": getattr(exc, "status", None),
            },
        )

    return before_sleep


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    sleep: Optional[SleepFn] = None,
    label: str = "",
) -> T:
    """Run ``fn`` until it succeeds, waiting ``2**attempt`` seconds between transient failures.

    Only :class:`TransientError` is retried. Anything else propagates on the first
    occurrence. When every attempt fails transiently, :class:`RetriesExhaustedError`
    is raised with the last transient error attached.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    retrying = AsyncRetrying(
        retry=retry_if_exception_type(TransientError),
        wait=wait_exponential(multiplier=1, exp_base=2),
        stop=stop_after_attempt(max_attempts),
        sleep=sleep or asyncio.sleep,
        before_sleep=_log_backoff(label, max_attempts),
    )
    try:
        async for attempt in retrying:
            with attempt:
                return await fn()
    except RetryError as exc:
        last_error = exc.last_attempt.exception()
        raise RetriesExhaustedError(max_attempts, last_error) from last_error
    raise AssertionError("unreachable")  # pragma: no cover
