# app/tasks/celery_app.py
from celery import Celery

from app.core.config import settings
from app.core.logger import setup_logging

setup_logging()

celery_app = Celery(
    "dental_booking",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.notification_tasks", "app.tasks.reminder_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=False,
    beat_schedule={
        "dispatch-due-reminders": {
            "task": "app.tasks.reminder_tasks.dispatch_due_reminders",
            "schedule": float(settings.REMINDER_DISPATCH_INTERVAL_SECONDS),
        },
    },
)
