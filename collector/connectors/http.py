"""Outbound HTTP gateway shared by all sources: host throttle, fixed timeout, status mapping."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional

import httpx

from collector.services.rate_limiter import HostRateLimiter, host_of

from .errors import ConnectorError, error_for_status


class SourceHttp:
    """Thin wrapper around ``httpx.AsyncClient``.

    Every request is throttled per host before it is sent and bounded by the
    fetch timeout. Responses with status >= 400 are mapped to
    ``TransientError`` (429/5xx) or ``PermanentError`` (everything else).
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        rate_limiter: HostRateLimiter,
        *,
        timeout_seconds: float = 10.0,
        user_agent: str = "Mozilla/5.0 (compatible; ContentCollector/1.0)",
    ) -> None:
        self._client = client
        self._limiter = rate_limiter
        self._timeout = timeout_seconds
        self._headers = {"User-Agent": user_agent}

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    async def get(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        host = host_of(url)
        await self._limiter.throttle(host)
        merged = {**self._headers, **(headers or {})}
        # httpx timeouts apply per phase; wait_for bounds the whole request and body read.
        try:
            resp = await asyncio.wait_for(
                self._client.get(
                    url,
                    params=params,
                    headers=merged,
                    timeout=self._timeout,
                    follow_redirects=True,
                ),
                timeout=self._timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise ConnectorError(f"timeout after {self._timeout:g}s fetching {host}") from exc
        except httpx.HTTPError as exc:
            raise ConnectorError(f"request to {host} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise error_for_status(resp.status_code, f"HTTP {resp.status_code} from {host}")
        return resp

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        resp = await self.get(url, **kwargs)
        try:
            return resp.json()
        except ValueError as exc:
            raise ConnectorError(f"invalid JSON from {host_of(url)}") from exc

    async def get_text(self, url: str, **kwargs: Any) -> str:
        resp = await self.get(url, **kwargs)
        return resp.text
