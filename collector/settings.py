"""Configuration models for the collection and recommendation services."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import (
    Field,
    NonNegativeInt,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """수집/추천 서비스 환경 설정."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    storage_dsn: str = Field(..., alias="STORAGE_DSN", description="콘텐츠 저장소 SQLAlchemy DSN.")
    broker_url: str = Field(
        "redis://localhost:6379/0",
        alias="CELERY_BROKER_URL",
        description="Celery 브로커/백엔드 Redis DSN.",
    )

    max_new_items_per_run: PositiveInt = Field(2000, alias="MAX_NEW_ITEMS_PER_RUN", description="실행당 신규 저장 상한.")
    fetch_concurrency: PositiveInt = Field(5, alias="FETCH_CONCURRENCY", description="동시에 실행할 소스 그룹 수.")
    fetch_timeout_ms: PositiveInt = Field(10_000, alias="FETCH_TIMEOUT_MS", description="요청당 타임아웃(ms).")
    host_rate_per_second: PositiveInt = Field(10, alias="HOST_RATE_PER_SECOND", description="호스트별 초당 요청 수.")
    retry_max_attempts: PositiveInt = Field(3, alias="RETRY_MAX_ATTEMPTS", description="429/5xx 재시도 횟수.")
    feed_user_agent: str = Field(
        "Mozilla/5.0 (compatible; ContentCollector/1.0)",
        alias="FEED_USER_AGENT",
        description="외부 요청 User-Agent.",
    )

    cache_ttl_seconds: PositiveInt = Field(300, alias="RECOMMENDATION_CACHE_TTL_SECONDS", description="추천 캐시 TTL(초).")
    user_throttle_ms: PositiveInt = Field(1000, alias="USER_THROTTLE_MS", description="사용자별 요청 간격(ms).")
    fallback_lookback_days: PositiveInt = Field(120, alias="FALLBACK_LOOKBACK_DAYS", description="폴백 후보 기간(일).")
    fallback_pool_size: PositiveInt = Field(300, alias="FALLBACK_POOL_SIZE", description="폴백 후보 최대 개수.")

    auto_collect_interval_minutes: NonNegativeInt = Field(
        360,
        alias="AUTO_COLLECT_INTERVAL_MINUTES",
        description="자동 수집 주기(분), 0이면 비활성.",
    )
    auto_sync_interval_minutes: NonNegativeInt = Field(
        0,
        alias="AUTO_SYNC_INTERVAL_MINUTES",
        description="전체 동기화 주기(분), 0이면 비활성.",
    )
    sync_page_size: PositiveInt = Field(500, alias="SYNC_PAGE_SIZE", description="전체 동기화 페이지 크기.")
    interaction_lookback_days: PositiveInt = Field(90, alias="INTERACTION_LOOKBACK_DAYS", description="피드백 동기화 기간(일).")

    ranker_base_url: str = Field("http://localhost:8087", alias="RANKER_BASE_URL", description="추천 엔진 주소.")
    ranker_api_key: Optional[SecretStr] = Field(None, alias="RANKER_API_KEY", description="추천 엔진 API 키.")
    ranker_timeout_seconds: PositiveInt = Field(10, alias="RANKER_TIMEOUT_SECONDS", description="추천 엔진 타임아웃(초).")

    newsapi_key: Optional[SecretStr] = Field(None, alias="NEWSAPI_KEY", description="NewsAPI 인증 키.")
    guardian_api_key: Optional[SecretStr] = Field(None, alias="GUARDIAN_API_KEY", description="Guardian API 인증 키.")

    log_level: str = Field("INFO", alias="LOG_LEVEL", description="로그 레벨.")
    log_json: bool = Field(False, alias="LOG_JSON", description="로그를 JSON 형식으로 출력할지 여부.")

    @field_validator("storage_dsn")
    @classmethod
    def _validate_storage_dsn(cls, value: str) -> str:
        dsn = value.strip()
        if "://" not in dsn:
            raise ValueError("STORAGE_DSN은 유효한 DSN 문자열이어야 합니다.")
        return dsn

    @field_validator("ranker_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        url = value.strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError("RANKER_BASE_URL은 http(s) 주소여야 합니다.")
        return url

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"알 수 없는 LOG_LEVEL입니다: {value}")
        return level

    @property
    def fetch_timeout_seconds(self) -> float:
        return self.fetch_timeout_ms / 1000.0

    @property
    def user_throttle_seconds(self) -> float:
        return self.user_throttle_ms / 1000.0


@lru_cache()
def get_settings() -> Settings:
    """환경 변수를 기준으로 Settings 인스턴스를 반환한다."""
    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"환경 변수 검증에 실패했습니다: {exc}") from exc


def reset_settings_cache() -> None:
    """Settings LRU 캐시를 초기화한다 (테스트 용도)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
