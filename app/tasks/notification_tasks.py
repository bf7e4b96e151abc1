# app/tasks/notification_tasks.py
from celery import shared_task
from typing import Iterable
import logging

from app.core.constants import LifecycleEventType
from app.core.database import SessionLocal
from app.models.appointment import Appointment
from app.schemas.events import LifecycleEvent
from app.services.clinic_service import ClinicService
from app.services.email_service import (
    send_appointment_cancelled_email,
    send_appointment_confirmation_email,
    send_appointment_rescheduled_email,
)

logger = logging.getLogger(__name__)

EMAIL_SENDERS = {
    LifecycleEventType.CREATED: send_appointment_confirmation_email,
    LifecycleEventType.RESCHEDULED: send_appointment_rescheduled_email,
    LifecycleEventType.CANCELLED: send_appointment_cancelled_email,
}


def publish_events(events: Iterable[LifecycleEvent]) -> None:
    """
    Hand committed lifecycle events to the worker queue.

    Best effort: a broker outage is logged and never surfaces to the caller,
    the appointment change is already committed.
    """
    for event in events:
        try:
            handle_lifecycle_event.delay(event.model_dump(mode="json"))
        except Exception as e:
            logger.error(f"Could not enqueue {event.type.value} for {event.reference_number}: {e}")


@shared_task(bind=True, max_retries=3)
def handle_lifecycle_event(self, payload: dict):
    """
    Send the patient email that goes with a lifecycle event.

    Retries on transport errors. Completed appointments need no email.
    """
    event = LifecycleEvent.model_validate(payload)
    sender = EMAIL_SENDERS.get(event.type)
    if sender is None:
        return

    db = SessionLocal()
    try:
        appt = db.query(Appointment).filter(Appointment.id == event.appointment_id).first()
        if not appt:
            logger.error(f"Appointment {event.appointment_id} not found for {event.type.value}.")
            return
        if not appt.patient.email:
            logger.warning(f"No email on file for appointment {appt.reference_number}")
            return

        clinic = ClinicService.get_settings(db)
        sender(appt, clinic.timezone)
        logger.info(f"Sent {event.type.value} email for {appt.reference_number}")
    except Exception as e:
        logger.error(f"Error handling {event.type.value} for {event.reference_number}: {e}")
        raise self.retry(exc=e, countdown=60)
    finally:
        db.close()
