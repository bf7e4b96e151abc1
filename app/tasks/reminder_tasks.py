# app/tasks/reminder_tasks.py
from celery import shared_task
import logging

from app.core.database import SessionLocal
from app.services.clinic_service import ClinicService
from app.services.reminder_service import ReminderService

logger = logging.getLogger(__name__)


def run_reminder_sweep() -> dict:
    """One dispatch pass over due reminders with its own session."""
    db = SessionLocal()
    try:
        clinic = ClinicService.get_settings(db)
        return ReminderService.dispatch_due(db, clinic)
    finally:
        db.close()


@shared_task
def dispatch_due_reminders():
    """
    Periodic sweep scheduled by Celery beat every REMINDER_DISPATCH_INTERVAL_SECONDS.

    Not retried: a failed reminder stays failed and a crashed sweep is simply
    picked up by the next tick.
    """
    try:
        return run_reminder_sweep()
    except Exception as e:
        logger.error(f"Reminder sweep failed: {e}")
        raise
