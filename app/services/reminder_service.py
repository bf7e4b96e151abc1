import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.constants import AppointmentStatus, ReminderChannel, ReminderStatus
from app.models.appointment import Appointment
from app.models.clinic import ClinicSettings
from app.models.reminder import AppointmentReminder
from app.services.email_service import send_appointment_reminder_email
from app.services.whatsapp_service import send_appointment_reminder_whatsapp
from app.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class ReminderService:
    """
    Derives reminder rows from an appointment and the clinic policy, and
    delivers the ones that are due.

    ``schedule``/``regenerate``/``purge`` only stage changes on the session;
    the caller commits them together with the appointment change.
    """

    @staticmethod
    def schedule(db: Session, clinic: ClinicSettings, appt: Appointment) -> List[AppointmentReminder]:
        """One pending row per (offset, channel) pair when reminders are enabled."""
        if not clinic.reminder_enabled:
            return []

        reminders = []
        seen = set()
        for offset in clinic.reminder_offsets or []:
            for channel in clinic.reminder_channels or []:
                if (offset, channel) in seen:
                    continue
                seen.add((offset, channel))
                reminder = AppointmentReminder(
                    appointment_id=appt.id,
                    offset_minutes=offset,
                    channel=channel,
                    status=ReminderStatus.PENDING.value,
                    due_at=appt.starts_at - timedelta(minutes=offset),
                )
                db.add(reminder)
                reminders.append(reminder)
        return reminders

    @staticmethod
    def purge(db: Session, appointment_id: int) -> int:
        deleted = (
            db.query(AppointmentReminder)
            .filter(AppointmentReminder.appointment_id == appointment_id)
            .delete(synchronize_session=False)
        )
        # flush the delete before re-inserting rows with the same unique keys
        db.flush()
        return deleted

    @staticmethod
    def regenerate(db: Session, clinic: ClinicSettings, appt: Appointment) -> List[AppointmentReminder]:
        """Delete-then-recreate from the current policy, inside the caller's transaction."""
        ReminderService.purge(db, appt.id)
        db.expire(appt, ["reminders"])
        return ReminderService.schedule(db, clinic, appt)

    @staticmethod
    def list_for_appointment(db: Session, appointment_id: int) -> List[AppointmentReminder]:
        return (
            db.query(AppointmentReminder)
            .filter(AppointmentReminder.appointment_id == appointment_id)
            .order_by(AppointmentReminder.due_at.asc(), AppointmentReminder.channel.asc())
            .all()
        )

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------
    @staticmethod
    def _claim(db: Session, reminder_id: int) -> bool:
        """Move a reminder from pending to sending; False if another worker got it first."""
        result = db.execute(
            update(AppointmentReminder)
            .where(
                AppointmentReminder.id == reminder_id,
                AppointmentReminder.status == ReminderStatus.PENDING.value,
            )
            .values(status=ReminderStatus.SENDING.value)
        )
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def _finish(db: Session, reminder: AppointmentReminder, error: Optional[str], now: datetime) -> None:
        if error:
            reminder.status = ReminderStatus.FAILED.value
            reminder.failure_reason = error
            logger.warning(f"Reminder {reminder.id} for appointment {reminder.appointment_id} failed: {error}")
        else:
            reminder.status = ReminderStatus.SENT.value
            reminder.sent_at = now
            logger.info(
                f"Sent {reminder.channel} reminder {reminder.id} for appointment {reminder.appointment_id}"
            )
        db.commit()

    @staticmethod
    def _deliver(reminder: AppointmentReminder, clinic: ClinicSettings, now: datetime) -> Optional[str]:
        """Send one claimed reminder; returns a failure reason or None."""
        appt = reminder.appointment
        if appt is None or appt.status != AppointmentStatus.SCHEDULED.value:
            return "Appointment is no longer scheduled"
        if appt.starts_at <= now:
            return "Appointment has already started"

        if reminder.channel == ReminderChannel.EMAIL.value:
            if not appt.patient.email:
                return "Patient has no email"
            if not send_appointment_reminder_email(appt, reminder.offset_minutes, clinic.timezone):
                return "Email service returned false"
            return None

        if reminder.channel == ReminderChannel.WHATSAPP.value:
            if not appt.patient.phone:
                return "Patient has no phone number"
            send_appointment_reminder_whatsapp(appt, reminder.offset_minutes, clinic.timezone)
            return None

        return f"Unknown channel: {reminder.channel}"

    @staticmethod
    def dispatch_due(db: Session, clinic: ClinicSettings, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Deliver every pending reminder whose due time has passed.

        Each row is claimed (pending -> sending) and committed before any
        delivery attempt, so a crash mid-send never leads to a second send.
        Failures are terminal; nothing is re-queued.
        """
        now = now or utc_now()
        stats = {"sent": 0, "failed": 0, "skipped": 0}

        if not clinic.reminder_enabled:
            return stats

        due_ids = [
            row.id
            for row in db.query(AppointmentReminder.id)
            .filter(
                AppointmentReminder.status == ReminderStatus.PENDING.value,
                AppointmentReminder.due_at <= now,
            )
            .order_by(AppointmentReminder.due_at.asc())
            .all()
        ]

        for reminder_id in due_ids:
            if not ReminderService._claim(db, reminder_id):
                stats["skipped"] += 1
                continue

            reminder = db.get(AppointmentReminder, reminder_id)
            if reminder is None:
                # appointment cancelled between claim and load
                stats["skipped"] += 1
                continue

            try:
                error = ReminderService._deliver(reminder, clinic, now)
            except Exception as e:
                logger.exception(f"Error delivering reminder {reminder_id}")
                error = str(e) or e.__class__.__name__

            ReminderService._finish(db, reminder, error, now)
            stats["failed" if error else "sent"] += 1

        if due_ids:
            logger.info(f"Reminder sweep: {stats}")
        return stats
