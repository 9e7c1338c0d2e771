from datetime import timedelta

from celery import Celery

from framebook.core.config import settings

celery_app = Celery(
    "framebook",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["framebook.tasks.reminders"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "remind-upcoming-bookings": {
            "task": "bookings.remind_upcoming",
            "schedule": timedelta(minutes=settings.celery_reminder_interval_minutes),
        },
    },
)
