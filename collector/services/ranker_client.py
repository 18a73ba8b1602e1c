"""Client for the external ranking service (Gorse-compatible REST API)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field

from collector.connectors.errors import RankerError


class RankerItem(BaseModel):
    id: str = Field(..., serialization_alias="ItemId")
    hidden: bool = Field(False, serialization_alias="IsHidden")
    categories: List[str] = Field(default_factory=list, serialization_alias="Categories")
    timestamp: datetime = Field(..., serialization_alias="Timestamp")
    labels: List[str] = Field(default_factory=list, serialization_alias="Labels")
    comment: str = Field("", serialization_alias="Comment")


class RankerUser(BaseModel):
    id: str = Field(..., serialization_alias="UserId")
    labels: List[str] = Field(default_factory=list, serialization_alias="Labels")
    comment: str = Field("", serialization_alias="Comment")


class RankerFeedback(BaseModel):
    type: str = Field(..., serialization_alias="FeedbackType")
    user_id: str = Field(..., serialization_alias="UserId")
    item_id: str = Field(..., serialization_alias="ItemId")
    timestamp: datetime = Field(..., serialization_alias="Timestamp")


class RankedCandidate(BaseModel):
    id: str
    score: float = 1.0


class Ranker(Protocol):
    async def insert_items(self, items: Sequence[RankerItem]) -> None: ...  # noqa: D401
    async def insert_users(self, users: Sequence[RankerUser]) -> None: ...
    async def insert_feedback(self, feedback: Sequence[RankerFeedback]) -> None: ...
    async def recommend(self, user_id: str, n: int) -> List[RankedCandidate]: ...
    async def health(self) -> bool: ...


def _dump(models: Sequence[BaseModel]) -> List[Dict[str, Any]]:
    return [m.model_dump(mode="json", by_alias=True) for m in models]


def parse_candidates(payload: Any) -> List[RankedCandidate]:
    """Accept bare id strings or ``{"Id": ..., "Score": ...}`` objects.

    Anything else is a protocol violation and raises :class:`RankerError`.
    """
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise RankerError(f"unexpected recommend payload: {type(payload).__name__}")
    out: List[RankedCandidate] = []
    for entry in payload:
        if isinstance(entry, str):
            out.append(RankedCandidate(id=entry))
        elif isinstance(entry, dict) and entry.get("Id"):
            score = entry.get("Score")
            try:
                value = float(score) if score is not None else 1.0
            except (TypeError, ValueError) as exc:
                raise RankerError(f"invalid score for {entry['Id']}: {score!r}") from exc
            out.append(RankedCandidate(id=str(entry["Id"]), score=value))
    return out


class RankerClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json"}
        if api_key:
            self._headers["X-API-Key"] = api_key
        self._timeout = timeout_seconds

    async def _request(self, method: str, path: str, *, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._client.request(
                method, url, json=json, params=params, headers=self._headers, timeout=self._timeout
            )
        except httpx.HTTPError as exc:
            raise RankerError(f"ranker unreachable: {exc}") from exc
        if resp.status_code >= 400:
            raise RankerError(f"ranker error ({resp.status_code}): {resp.text[:200]}", status=resp.status_code)
        try:
            return resp.json()
        except ValueError:
            return None

    async def insert_items(self, items: Sequence[RankerItem]) -> None:
        await self._request("POST", "/api/items", json=_dump(items))

    async def insert_users(self, users: Sequence[RankerUser]) -> None:
        await self._request("POST", "/api/users", json=_dump(users))

    async def insert_feedback(self, feedback: Sequence[RankerFeedback]) -> None:
        await self._request("POST", "/api/feedback", json=_dump(feedback))

    async def recommend(self, user_id: str, n: int) -> List[RankedCandidate]:
        payload = await self._request(
            "GET",
            f"/api/recommend/{quote(user_id, safe='')}",
            params={"n": n, "write-back-type": "read", "write-back-delay": 0},
        )
        return parse_candidates(payload)

    async def health(self) -> bool:
        try:
            await self._request("GET", "/api/items", params={"n": 1})
        except RankerError:
            return False
        return True
