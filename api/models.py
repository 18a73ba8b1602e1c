from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SyncType = Literal["items", "users", "interactions", "full"]
HealthStatus = Literal["healthy", "degraded"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CollectRequest(CamelModel):
    sources: Optional[List[str]] = Field(None, description="실행할 소스 그룹 (비우면 전체)")
    dry: bool = Field(False, description="저장 없이 수집 결과만 확인")


class InvalidateRequest(CamelModel):
    uid: str = Field(..., min_length=1)


class InvalidateResponse(CamelModel):
    success: bool
    uid: str
    cleared: int
    user_synced: bool


class InteractionRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    content_id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="view, like, save, dismiss 등")


class InteractionResponse(CamelModel):
    success: bool
    user_id: str
    content_id: str


class SyncRequest(CamelModel):
    type: SyncType = "full"


class HealthResponse(CamelModel):
    status: HealthStatus
    storage: bool
    ranker: bool
    timestamp: datetime


class ContentCount(CamelModel):
    count: int
