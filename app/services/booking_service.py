import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import AppointmentStatus, LifecycleEventType, RejectionKind
from app.models.appointment import Appointment
from app.schemas.appointment import BookingRequest, BookingResult
from app.schemas.common import Rejection
from app.services.appointment_service import AppointmentService
from app.services.clinic_service import ClinicService
from app.services.doctor_service import DoctorService
from app.services.patient_service import PatientService
from app.services.reminder_service import ReminderService
from app.services.validation_service import BookingValidator, reject
from app.utils.helpers import format_minutes, to_minutes
from app.utils.timezone import clinic_time_to_utc

logger = logging.getLogger(__name__)


class BookingService:
    @staticmethod
    def validate_and_book(
        db: Session,
        request: BookingRequest,
        now: Optional[datetime] = None,
    ) -> Union[BookingResult, Rejection]:
        """
        Single entry point for new bookings from every channel.

        - Short-circuits on the first failed check and returns it as a Rejection.
        - Takes the per-doctor booking lock before the slot checks, so the
          conflict check and the insert are never interleaved with another
          booking or reschedule for the same doctor.
        - A write rejected by the per-doctor start-time index becomes
          ``slot_unavailable``; any other constraint failure is raised.
        - Returns a BookingResult whose ``events`` the caller publishes after commit.
        """
        rejection = BookingValidator.validate_identity(
            request.patient_name, request.patient_phone, request.patient_email
        )
        if rejection:
            return rejection

        clinic = ClinicService.get_settings(db)

        doctor = DoctorService.lock_for_booking(db, request.doctor_id)
        if not doctor or not doctor.is_active:
            db.rollback()
            return reject(
                RejectionKind.DOCTOR_NOT_FOUND,
                "That doctor is not available for booking. Please choose another doctor.",
                field="doctor_id",
            )

        duration = clinic.appointment_duration
        rejection = BookingValidator.check_slot(
            db, clinic, doctor.id, request.date, request.time, duration, now=now
        )
        if rejection:
            db.rollback()
            return rejection

        try:
            patient = PatientService.upsert(
                db, request.patient_name, request.patient_phone, request.patient_email
            )
            appt = Appointment(
                reference_number=AppointmentService.generate_reference_number(db),
                doctor_id=doctor.id,
                patient_id=patient.id,
                starts_at=clinic_time_to_utc(request.date, request.time, clinic.timezone),
                duration=duration,
                status=AppointmentStatus.SCHEDULED.value,
                service=request.service,
                source=request.source.value,
                notes=request.notes,
            )
            db.add(appt)
            db.flush()
            ReminderService.schedule(db, clinic, appt)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if not AppointmentService.is_slot_conflict(e):
                logger.error(f"Booking for doctor {request.doctor_id} failed on a constraint: {e.orig}")
                raise
            logger.info(f"Booking for doctor {request.doctor_id} at {request.date} {request.time} lost a race")
            return reject(
                RejectionKind.SLOT_UNAVAILABLE,
                "That time was just booked by someone else. Please choose another time.",
                field="time",
            )

        db.refresh(appt)
        logger.info(
            f"Booked {appt.reference_number} for doctor {doctor.id} on {request.date} "
            f"{format_minutes(to_minutes(request.time))} via {appt.source}"
        )
        return BookingResult(
            appointment_id=appt.id,
            reference_number=appt.reference_number,
            doctor_id=doctor.id,
            doctor_name=doctor.name,
            date=request.date,
            time=format_minutes(to_minutes(request.time)),
            duration=appt.duration,
            service=appt.service,
            patient_name=patient.name,
            patient_phone=patient.phone,
            patient_email=patient.email,
            source=request.source,
            events=[AppointmentService.event_for(appt, LifecycleEventType.CREATED)],
        )
