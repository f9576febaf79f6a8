"""Celery application configuration."""
from celery import Celery
from celery.schedules import crontab

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "webhook_capture",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["app.tasks.retention_tasks"],
)

celery_app.conf.update(
    task_track_started=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "retention-sweep-daily": {
            "task": "app.tasks.retention_tasks.run_retention_sweep",
            "schedule": crontab(hour=settings.retention_sweep_hour, minute=0),
        },
    },
)
