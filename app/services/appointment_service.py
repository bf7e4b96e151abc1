import logging
import secrets
from datetime import date as date_type, datetime, time
from typing import List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import AppointmentStatus, LifecycleEventType, RejectionKind
from app.models.appointment import SLOT_INDEX_NAME, Appointment
from app.schemas.appointment import (
    CancelResult,
    CompleteResult,
    LookupResult,
    RescheduleResult,
)
from app.schemas.common import Rejection
from app.schemas.events import LifecycleEvent
from app.services.clinic_service import ClinicService
from app.services.doctor_service import DoctorService
from app.services.reminder_service import ReminderService
from app.services.validation_service import BookingValidator, reject
from app.utils.helpers import format_minutes
from app.utils.timezone import clinic_time_to_utc, utc_now, utc_to_clinic_time
from app.utils.validators import phone_matches

logger = logging.getLogger(__name__)

# No 0/O or 1/I so references survive being read out over the phone
REFERENCE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class AppointmentService:
    """
    Appointment lifecycle: reference numbers, lookup, reschedule, cancel and
    complete. Booking itself lives in ``BookingService``.

    Self-service operations identify an appointment by reference number and
    authorize with the patient's phone; admin operations work on the id.
    Every state change returns the lifecycle events to publish after commit.
    """

    # -------------------------------------------------------------------------
    # Reference numbers
    # -------------------------------------------------------------------------
    @staticmethod
    def generate_reference_number(db: Session, max_attempts: int = 10) -> str:
        for _ in range(max_attempts):
            suffix = "".join(
                secrets.choice(REFERENCE_ALPHABET) for _ in range(settings.REFERENCE_NUMBER_LENGTH)
            )
            candidate = f"{settings.REFERENCE_NUMBER_PREFIX}{suffix}"
            exists = db.query(Appointment.id).filter(Appointment.reference_number == candidate).first()
            if not exists:
                return candidate
        raise RuntimeError("Could not generate a unique reference number")

    @staticmethod
    def normalize_reference(reference_number: str) -> str:
        return (reference_number or "").strip().upper()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def local_date_time(appt: Appointment, timezone_str: Optional[str]) -> Tuple[date_type, str]:
        local = utc_to_clinic_time(appt.starts_at, timezone_str)
        return local.date(), format_minutes(local.hour * 60 + local.minute)

    @staticmethod
    def event_for(
        appt: Appointment,
        event_type: LifecycleEventType,
        previous_starts_at: Optional[datetime] = None,
    ) -> LifecycleEvent:
        return LifecycleEvent(
            type=event_type,
            appointment_id=appt.id,
            reference_number=appt.reference_number,
            starts_at=appt.starts_at,
            previous_starts_at=previous_starts_at,
        )

    @staticmethod
    def is_slot_conflict(exc: IntegrityError) -> bool:
        """True when ``exc`` came from the per-doctor start-time index."""
        message = str(exc.orig)
        # PostgreSQL names the index, SQLite lists its columns
        return SLOT_INDEX_NAME in message or "appointments.doctor_id, appointments.starts_at" in message

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def _authorize(db: Session, reference_number: str, phone: str) -> Union[Appointment, Rejection]:
        reference = AppointmentService.normalize_reference(reference_number)
        appt = db.query(Appointment).filter(Appointment.reference_number == reference).first()
        if not appt:
            return reject(
                RejectionKind.NOT_FOUND,
                f"No appointment found with reference number {reference}.",
                field="reference_number",
            )
        if not phone_matches(appt.patient.phone, phone):
            logger.warning(f"Phone mismatch for appointment {appt.reference_number}")
            return reject(
                RejectionKind.AUTHORIZATION_FAILURE,
                "The phone number does not match our records for this appointment.",
                field="phone",
            )
        return appt

    @staticmethod
    def _require_scheduled(appt: Appointment, action: str) -> Optional[Rejection]:
        if appt.status != AppointmentStatus.SCHEDULED.value:
            return reject(
                RejectionKind.INVALID_STATE,
                f"This appointment is {appt.status} and cannot be {action}.",
                details={"status": appt.status},
            )
        return None

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------
    @staticmethod
    def lookup(db: Session, reference_number: str, phone: str) -> Union[LookupResult, Rejection]:
        found = AppointmentService._authorize(db, reference_number, phone)
        if isinstance(found, Rejection):
            return found

        clinic = ClinicService.get_settings(db)
        local_date, local_time = AppointmentService.local_date_time(found, clinic.timezone)
        return LookupResult(
            appointment_id=found.id,
            reference_number=found.reference_number,
            doctor_name=found.doctor.name,
            patient_name=found.patient.name,
            service=found.service,
            date=local_date,
            time=local_time,
            duration=found.duration,
            status=found.status,
        )

    # -------------------------------------------------------------------------
    # Cancel
    # -------------------------------------------------------------------------
    @staticmethod
    def cancel(
        db: Session,
        reference_number: str,
        phone: str,
        reason: Optional[str] = None,
    ) -> Union[CancelResult, Rejection]:
        found = AppointmentService._authorize(db, reference_number, phone)
        if isinstance(found, Rejection):
            return found
        return AppointmentService._cancel(db, found, reason)

    @staticmethod
    def cancel_by_id(db: Session, appointment_id: int, reason: Optional[str] = None) -> Union[CancelResult, Rejection]:
        appt = AppointmentService.get_by_id(db, appointment_id)
        if not appt:
            return reject(RejectionKind.NOT_FOUND, f"Appointment {appointment_id} not found.")
        return AppointmentService._cancel(db, appt, reason)

    @staticmethod
    def _cancel(db: Session, appt: Appointment, reason: Optional[str]) -> Union[CancelResult, Rejection]:
        rejection = AppointmentService._require_scheduled(appt, "cancelled")
        if rejection:
            return rejection

        appt.status = AppointmentStatus.CANCELLED.value
        appt.cancelled_at = utc_now()
        if reason:
            appt.notes = f"{appt.notes}\nCancelled: {reason}" if appt.notes else f"Cancelled: {reason}"
        ReminderService.purge(db, appt.id)
        db.commit()
        db.expire(appt, ["reminders"])

        logger.info(f"Appointment {appt.reference_number} cancelled")
        return CancelResult(
            appointment_id=appt.id,
            reference_number=appt.reference_number,
            status=appt.status,
            events=[AppointmentService.event_for(appt, LifecycleEventType.CANCELLED)],
        )

    # -------------------------------------------------------------------------
    # Reschedule
    # -------------------------------------------------------------------------
    @staticmethod
    def reschedule(
        db: Session,
        reference_number: str,
        phone: str,
        new_date: date_type,
        new_time: time,
        now: Optional[datetime] = None,
    ) -> Union[RescheduleResult, Rejection]:
        found = AppointmentService._authorize(db, reference_number, phone)
        if isinstance(found, Rejection):
            return found
        return AppointmentService._reschedule(db, found, new_date, new_time, now)

    @staticmethod
    def reschedule_by_id(
        db: Session,
        appointment_id: int,
        new_date: date_type,
        new_time: time,
        now: Optional[datetime] = None,
    ) -> Union[RescheduleResult, Rejection]:
        appt = AppointmentService.get_by_id(db, appointment_id)
        if not appt:
            return reject(RejectionKind.NOT_FOUND, f"Appointment {appointment_id} not found.")
        return AppointmentService._reschedule(db, appt, new_date, new_time, now)

    @staticmethod
    def _reschedule(
        db: Session,
        appt: Appointment,
        new_date: date_type,
        new_time: time,
        now: Optional[datetime],
    ) -> Union[RescheduleResult, Rejection]:
        """
        Re-run the slot checks for the new time, ignoring the appointment's own
        row, then move it and rebuild its reminders in one transaction.
        """
        rejection = AppointmentService._require_scheduled(appt, "rescheduled")
        if rejection:
            return rejection

        clinic = ClinicService.get_settings(db)
        old_date, old_time = AppointmentService.local_date_time(appt, clinic.timezone)

        DoctorService.lock_for_booking(db, appt.doctor_id)
        # the row may have been cancelled or completed while we waited
        db.refresh(appt)
        rejection = AppointmentService._require_scheduled(appt, "rescheduled")
        if rejection:
            db.rollback()
            return rejection

        rejection = BookingValidator.check_slot(
            db,
            clinic,
            appt.doctor_id,
            new_date,
            new_time,
            appt.duration,
            now=now,
            exclude_appointment_id=appt.id,
        )
        if rejection:
            db.rollback()
            return rejection

        previous_starts_at = appt.starts_at
        try:
            appt.starts_at = clinic_time_to_utc(new_date, new_time, clinic.timezone)
            ReminderService.regenerate(db, clinic, appt)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if not AppointmentService.is_slot_conflict(e):
                logger.error(f"Reschedule of {appt.reference_number} failed on a constraint: {e.orig}")
                raise
            logger.info(f"Reschedule of {appt.reference_number} lost a race for {new_date} {new_time}")
            return reject(
                RejectionKind.SLOT_UNAVAILABLE,
                f"{new_date.isoformat()} {format_minutes(new_time.hour * 60 + new_time.minute)} was just booked by someone else.",
                field="time",
            )

        new_local_date, new_local_time = AppointmentService.local_date_time(appt, clinic.timezone)
        logger.info(
            f"Appointment {appt.reference_number} moved from {old_date} {old_time} "
            f"to {new_local_date} {new_local_time}"
        )
        return RescheduleResult(
            appointment_id=appt.id,
            reference_number=appt.reference_number,
            old_date=old_date,
            old_time=old_time,
            new_date=new_local_date,
            new_time=new_local_time,
            events=[
                AppointmentService.event_for(
                    appt, LifecycleEventType.RESCHEDULED, previous_starts_at=previous_starts_at
                )
            ],
        )

    # -------------------------------------------------------------------------
    # Complete
    # -------------------------------------------------------------------------
    @staticmethod
    def complete(db: Session, appointment_id: int) -> Union[CompleteResult, Rejection]:
        appt = AppointmentService.get_by_id(db, appointment_id)
        if not appt:
            return reject(RejectionKind.NOT_FOUND, f"Appointment {appointment_id} not found.")
        rejection = AppointmentService._require_scheduled(appt, "completed")
        if rejection:
            return rejection

        appt.status = AppointmentStatus.COMPLETED.value
        appt.completed_at = utc_now()
        db.commit()

        logger.info(f"Appointment {appt.reference_number} completed")
        return CompleteResult(
            appointment_id=appt.id,
            reference_number=appt.reference_number,
            status=appt.status,
            completed_at=appt.completed_at,
            events=[AppointmentService.event_for(appt, LifecycleEventType.COMPLETED)],
        )

    # -------------------------------------------------------------------------
    # Listing helpers
    # -------------------------------------------------------------------------
    @staticmethod
    def list_appointments(
        db: Session,
        doctor_id: Optional[int] = None,
        status: Optional[str] = None,
        from_date: Optional[date_type] = None,
        to_date: Optional[date_type] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Appointment], int]:
        q = db.query(Appointment)
        if doctor_id:
            q = q.filter(Appointment.doctor_id == doctor_id)
        if status:
            q = q.filter(Appointment.status == status)

        if from_date or to_date:
            tz = ClinicService.get_settings(db).timezone
            if from_date:
                q = q.filter(Appointment.starts_at >= clinic_time_to_utc(from_date, time.min, tz))
            if to_date:
                q = q.filter(Appointment.starts_at <= clinic_time_to_utc(to_date, time.max, tz))

        total = q.count()
        items = q.order_by(Appointment.starts_at.asc()).offset(skip).limit(limit).all()
        return items, total
