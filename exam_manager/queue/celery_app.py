"""
Celery application - scheduled maintenance jobs with RabbitMQ as broker.
Challenge: Keep nightly backups and token cleanup out of the request path.
Design: RabbitMQ broker, Redis result backend, beat schedule for the periodic jobs.
"""

from celery import Celery
from celery.schedules import crontab

from exam_manager.config import get_settings

settings = get_settings()

celery_app = Celery(
    "exam_manager",
    broker=settings.celery_broker_url,
    backend=settings.redis_url,
    include=["exam_manager.queue.tasks"],
)

# Task settings: time limits, serialization
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_track_started=True,
    # pg_dump of a large database can take a while
    task_time_limit=1800,
    task_soft_time_limit=1500,
    worker_prefetch_multiplier=1,  # Fair distribution
    timezone="UTC",
    enable_utc=True,
)

celery_app.conf.beat_schedule = {
    "automatic-backup": {
        "task": "exam_manager.queue.tasks.automatic_backup_task",
        "schedule": crontab(hour=settings.automatic_backup_hour, minute=0),
    },
    "revoke-expired-reset-tokens": {
        "task": "exam_manager.queue.tasks.revoke_expired_reset_tokens_task",
        "schedule": crontab(minute="*/10"),
    },
}
