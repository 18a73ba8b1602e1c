"""Celery 애플리케이션 부트스트랩."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict

from celery import Celery, signals
from celery.schedules import schedule as celery_schedule

from .settings import Settings, get_settings
from .utils.logging import configure_logging

_CELERY_APP: Celery | None = None

COLLECT_TASK = "collector.tasks.collect.collect_all_content"
FULL_SYNC_TASK = "collector.tasks.collect.run_full_sync"


def create_celery_app(settings: Settings | None = None) -> Celery:
    """설정을 기반으로 Celery 인스턴스를 생성한다."""
    config = settings or get_settings()
    configure_logging(config.log_level, json_enabled=config.log_json)

    app = Celery("collector", broker=config.broker_url, backend=config.broker_url)
    app.conf.update(
        task_default_queue="collector.default",
        task_default_exchange="collector",
        task_default_routing_key="collector.default",
        beat_schedule=_build_beat_schedule(config),
        timezone="UTC",
        enable_utc=True,
        worker_send_task_events=True,
        task_send_sent_event=True,
    )

    app.autodiscover_tasks(["collector.tasks"])
    _install_signal_handlers(app)
    return app


def get_celery_app() -> Celery:
    """싱글톤 Celery 인스턴스를 반환한다."""
    global _CELERY_APP
    if _CELERY_APP is None:
        _CELERY_APP = create_celery_app()
    return _CELERY_APP


def _build_beat_schedule(settings: Settings) -> Dict[str, Dict[str, Any]]:
    # 주기가 0이면 해당 작업은 스케줄에 넣지 않는다.
    schedule: Dict[str, Dict[str, Any]] = {}
    if settings.auto_collect_interval_minutes > 0:
        schedule["collect.all"] = {
            "task": COLLECT_TASK,
            "schedule": celery_schedule(timedelta(minutes=settings.auto_collect_interval_minutes)),
            "options": {"queue": "collector.collect"},
        }
    if settings.auto_sync_interval_minutes > 0:
        schedule["sync.full"] = {
            "task": FULL_SYNC_TASK,
            "schedule": celery_schedule(timedelta(minutes=settings.auto_sync_interval_minutes)),
            "options": {"queue": "collector.sync"},
        }
    return schedule


def _install_signal_handlers(app: Celery) -> None:
    logger = logging.getLogger("collector.worker")

    @signals.worker_shutdown.connect  # type: ignore[attr-defined]
    def _on_worker_shutdown(sender=None, **kwargs):  # noqa: ANN001
        logger.info("worker.shutdown", extra={"sender": str(sender)})
