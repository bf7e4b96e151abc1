import logging
from datetime import date as date_type, datetime, time, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.constants import DAY_NAMES, RejectionKind
from app.models.clinic import ClinicSettings
from app.schemas.common import Rejection
from app.services.availability_service import AvailabilityService
from app.utils.helpers import format_minutes, overlaps, to_minutes
from app.utils.timezone import clinic_now, weekday_index
from app.utils.validators import is_placeholder_name, is_placeholder_phone

logger = logging.getLogger(__name__)


def reject(kind: RejectionKind, message: str, **extra) -> Rejection:
    logger.info(f"Booking rejected ({kind.value}): {message}")
    return Rejection(kind=kind, message=message, **extra)


class BookingValidator:
    """
    Constraint pipeline shared by booking and rescheduling.

    Every check returns ``None`` when it passes or a ``Rejection`` describing
    the first failure. Nothing here writes to the database.
    """

    @staticmethod
    def validate_identity(
        name: Optional[str],
        phone: Optional[str],
        email: Optional[str],
    ) -> Optional[Rejection]:
        name = (name or "").strip()
        phone = (phone or "").strip()
        email = (email or "").strip()

        if len(name) < 2 or is_placeholder_name(name):
            return reject(
                RejectionKind.MISSING_INFO,
                "I need the patient's full name to book the appointment. What name should I use?",
                field="patient_name",
            )
        if len(phone) < 6 or is_placeholder_phone(phone):
            return reject(
                RejectionKind.MISSING_INFO,
                "I need a valid phone number so the clinic can reach the patient. What number should I use?",
                field="patient_phone",
            )
        if not email or "@" not in email:
            return reject(
                RejectionKind.MISSING_INFO,
                "I need an email address to send the confirmation. What email should I use?",
                field="patient_email",
            )
        return None

    @staticmethod
    def check_slot(
        db: Session,
        clinic: ClinicSettings,
        doctor_id: int,
        day: date_type,
        start: time,
        duration: int,
        now: Optional[datetime] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> Optional[Rejection]:
        """
        Temporal, hours, working-day, block and conflict checks, in that order.

        The conflict check is only reached once everything else passes, so
        alternatives are never computed for a slot that is invalid anyway.
        """
        wall_now = clinic_now(clinic.timezone, now).replace(tzinfo=None)
        start_min = to_minutes(start)
        end_min = start_min + duration
        requested = f"{day.isoformat()} {format_minutes(start_min)}"

        # Temporal validity; a slot starting exactly now is still bookable
        if day < wall_now.date():
            return reject(
                RejectionKind.PAST_DATE,
                f"{day.isoformat()} is in the past. Please choose a future date.",
                field="date",
            )
        if day == wall_now.date() and datetime.combine(day, time.min) + timedelta(minutes=start_min) < wall_now:
            return reject(
                RejectionKind.PAST_DATE,
                f"{format_minutes(start_min)} today has already passed. Please choose a later time.",
                field="time",
            )

        # Working hours
        open_min, close_min, _ = AvailabilityService.working_window(clinic)
        if start_min < open_min or end_min > close_min:
            return reject(
                RejectionKind.OUTSIDE_WORKING_HOURS,
                f"The clinic is open from {format_minutes(open_min)} to {format_minutes(close_min)} "
                f"and a {duration}-minute appointment must end by closing time.",
                field="time",
                details={"open_time": format_minutes(open_min), "close_time": format_minutes(close_min)},
            )

        # Working day
        if not AvailabilityService.is_working_day(clinic, day):
            return reject(
                RejectionKind.NOT_WORKING_DAY,
                f"The clinic is closed on {DAY_NAMES[weekday_index(day)]}s. Please choose another day.",
                field="date",
                details={"working_days": [DAY_NAMES[d] for d in sorted(clinic.working_days or [])]},
            )

        # Doctor blocks
        for block in AvailabilityService.blocks_for_day(db, doctor_id, day):
            if overlaps(start_min, end_min, to_minutes(block.start_time), to_minutes(block.end_time)):
                message = f"The doctor is unavailable from {AvailabilityService.describe_block(block)}."
                return reject(
                    RejectionKind.DOCTOR_BLOCKED,
                    message,
                    field="time",
                    details={
                        "block_start": format_minutes(to_minutes(block.start_time)),
                        "block_end": format_minutes(to_minutes(block.end_time)),
                        "reason": block.reason,
                    },
                )

        # Double booking
        booked = AvailabilityService.booked_ranges(db, clinic, doctor_id, day, exclude_appointment_id)
        if any(overlaps(start_min, end_min, s, e) for s, e in booked):
            alternatives = AvailabilityService.find_available_slots(
                db, clinic, doctor_id, day, exclude_appointment_id=exclude_appointment_id, now=now
            )
            if alternatives:
                return reject(
                    RejectionKind.SLOT_UNAVAILABLE_WITH_ALTERNATIVES,
                    f"{requested} is already booked. Other available times: "
                    + ", ".join(f"{a.date} {a.time}" for a in alternatives),
                    field="time",
                    alternatives=alternatives,
                )
            return reject(
                RejectionKind.SLOT_UNAVAILABLE,
                f"{requested} is already booked and there are no other open slots nearby.",
                field="time",
            )

        return None
