from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from dotenv import load_dotenv

# 프로젝트 루트의 .env 파일 명시적 로딩
project_root = Path(__file__).parent.parent
env_path = project_root / ".env"

if env_path.exists():
    load_dotenv(env_path)

from fastapi import FastAPI

from collector.runtime import Runtime, build_runtime
from collector.settings import get_settings
from collector.utils.logging import configure_logging, get_logger

from .routes import router

logger = get_logger(__name__)


def create_app(runtime_factory: Optional[Callable[[], Runtime]] = None) -> FastAPI:
    """Build the app; the runtime is created on startup and closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if runtime_factory is None:
            settings = get_settings()
            configure_logging(settings.log_level, json_enabled=settings.log_json)
            runtime = build_runtime(settings)
        else:
            runtime = runtime_factory()
        app.state.runtime = runtime
        logger.info("api.startup")
        try:
            yield
        finally:
            await runtime.aclose()
            logger.info("api.shutdown")

    app = FastAPI(title="Content Collector API", version="0.1.0", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()
