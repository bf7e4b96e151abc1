import logging
from datetime import date as date_type, datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import AppointmentStatus, DAY_NAMES
from app.models.appointment import Appointment
from app.models.clinic import ClinicSettings
from app.models.doctor import Doctor, DoctorAvailabilityBlock
from app.schemas.availability import AvailabilityResult, DayAvailability, EmergencySlot
from app.schemas.common import SlotOption
from app.utils.helpers import format_minutes, overlaps, to_minutes
from app.utils.timezone import (
    clinic_day_bounds_utc,
    clinic_now,
    utc_now,
    utc_to_clinic_time,
    weekday_index,
)

logger = logging.getLogger(__name__)

Range = Tuple[int, int]


class AvailabilityService:
    """
    Turns clinic hours, doctor blocks and existing appointments into open slots.

    All arithmetic is minutes since midnight of the clinic-local day, and every
    interval test is half-open (see ``app.utils.helpers.overlaps``).
    """

    # -------------------------------------------------------------------------
    # Building blocks
    # -------------------------------------------------------------------------
    @staticmethod
    def is_working_day(clinic: ClinicSettings, day: date_type) -> bool:
        return weekday_index(day) in (clinic.working_days or [])

    @staticmethod
    def working_window(clinic: ClinicSettings) -> Tuple[int, int, int]:
        """(open, close, duration) in minutes."""
        return (
            to_minutes(clinic.open_time),
            to_minutes(clinic.close_time),
            clinic.appointment_duration,
        )

    @staticmethod
    def booked_ranges(
        db: Session,
        clinic: ClinicSettings,
        doctor_id: int,
        day: date_type,
        exclude_appointment_id: Optional[int] = None,
    ) -> List[Range]:
        """Local-minute ranges of the doctor's live appointments on ``day``."""
        day_start, day_end = clinic_day_bounds_utc(day, clinic.timezone)
        q = db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.status != AppointmentStatus.CANCELLED.value,
            Appointment.starts_at >= day_start,
            Appointment.starts_at < day_end,
        )
        if exclude_appointment_id is not None:
            q = q.filter(Appointment.id != exclude_appointment_id)

        ranges = []
        for appt in q.all():
            local = utc_to_clinic_time(appt.starts_at, clinic.timezone)
            start = local.hour * 60 + local.minute
            ranges.append((start, start + appt.duration))
        return ranges

    @staticmethod
    def blocks_for_day(db: Session, doctor_id: int, day: date_type) -> List[DoctorAvailabilityBlock]:
        return (
            db.query(DoctorAvailabilityBlock)
            .filter(
                DoctorAvailabilityBlock.doctor_id == doctor_id,
                DoctorAvailabilityBlock.date == day,
                DoctorAvailabilityBlock.is_available == False,  # noqa: E712
            )
            .order_by(DoctorAvailabilityBlock.start_time.asc())
            .all()
        )

    @staticmethod
    def describe_block(block: DoctorAvailabilityBlock) -> str:
        text = f"{format_minutes(to_minutes(block.start_time))} - {format_minutes(to_minutes(block.end_time))}"
        if block.reason:
            text += f" ({block.reason})"
        return text

    @staticmethod
    def _free_starts(
        open_min: int,
        close_min: int,
        duration: int,
        busy: List[Range],
        not_before: Optional[int] = None,
    ) -> List[int]:
        step = settings.SLOT_STEP_MINUTES
        starts = []
        minute = open_min
        while minute + duration <= close_min:
            if not_before is not None and minute < not_before:
                minute += step
                continue
            end = minute + duration
            if not any(overlaps(minute, end, s, e) for s, e in busy):
                starts.append(minute)
            minute += step
        return starts

    # -------------------------------------------------------------------------
    # Resolver
    # -------------------------------------------------------------------------
    @staticmethod
    def resolve_day(
        db: Session,
        clinic: ClinicSettings,
        doctor_id: int,
        day: date_type,
        exclude_appointment_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> DayAvailability:
        """
        Open slots and blocked periods for one doctor on one clinic-local day.

        - Non-working days produce an empty result.
        - Slots are generated every SLOT_STEP_MINUTES from open time up to
          ``close - duration`` regardless of the appointment duration.
        - When ``now`` is given and ``day`` is today, slots that started before
          ``now`` are skipped.
        """
        if not AvailabilityService.is_working_day(clinic, day):
            return DayAvailability()

        open_min, close_min, duration = AvailabilityService.working_window(clinic)
        blocks = AvailabilityService.blocks_for_day(db, doctor_id, day)
        busy = [(to_minutes(b.start_time), to_minutes(b.end_time)) for b in blocks]
        busy += AvailabilityService.booked_ranges(db, clinic, doctor_id, day, exclude_appointment_id)

        not_before = None
        if now is not None:
            local_now = clinic_now(clinic.timezone, now)
            if day < local_now.date():
                return DayAvailability(
                    blocked_periods=[AvailabilityService.describe_block(b) for b in blocks]
                )
            if day == local_now.date():
                # round up to the next whole minute; a slot starting exactly now stays open
                partial = 1 if local_now.second or local_now.microsecond else 0
                not_before = local_now.hour * 60 + local_now.minute + partial

        starts = AvailabilityService._free_starts(open_min, close_min, duration, busy, not_before)
        return DayAvailability(
            open_slots=[SlotOption(date=day.isoformat(), time=format_minutes(m)) for m in starts],
            blocked_periods=[AvailabilityService.describe_block(b) for b in blocks],
        )

    @staticmethod
    def check_availability(
        db: Session,
        clinic: ClinicSettings,
        doctor_id: int,
        day: date_type,
        now: Optional[datetime] = None,
    ) -> AvailabilityResult:
        if not AvailabilityService.is_working_day(clinic, day):
            return AvailabilityResult(
                available=False,
                message=f"The clinic is closed on {DAY_NAMES[weekday_index(day)]}s.",
            )

        now = now or utc_now()
        resolved = AvailabilityService.resolve_day(db, clinic, doctor_id, day, now=now)
        slots = [slot.time for slot in resolved.open_slots]
        return AvailabilityResult(
            available=bool(slots),
            slots=slots,
            blocked_periods=resolved.blocked_periods,
            message=None if slots else "No open slots on this date.",
        )

    # -------------------------------------------------------------------------
    # Alternative-slot search
    # -------------------------------------------------------------------------
    @staticmethod
    def find_available_slots(
        db: Session,
        clinic: ClinicSettings,
        doctor_id: int,
        requested_day: date_type,
        exclude_appointment_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[SlotOption]:
        """
        Bounded greedy search run after a conflict.

        Walks the requested day and the following days up to
        ALTERNATIVE_SEARCH_DAYS in total, earliest first, and stops once
        ALTERNATIVE_SLOT_LIMIT slots are collected. Non-working days use up a
        day of the horizon without producing slots.
        """
        limit = settings.ALTERNATIVE_SLOT_LIMIT
        found: List[SlotOption] = []

        for offset in range(settings.ALTERNATIVE_SEARCH_DAYS):
            if len(found) >= limit:
                break
            day = requested_day + timedelta(days=offset)
            resolved = AvailabilityService.resolve_day(
                db, clinic, doctor_id, day, exclude_appointment_id=exclude_appointment_id, now=now
            )
            found.extend(resolved.open_slots[: limit - len(found)])

        logger.debug(f"Alternative search for doctor {doctor_id} from {requested_day}: {len(found)} slot(s)")
        return found

    @staticmethod
    def find_emergency_slot(
        db: Session,
        clinic: ClinicSettings,
        now: Optional[datetime] = None,
    ) -> EmergencySlot:
        """Earliest open slot across all active doctors, starting from clinic-local now."""
        now = now or utc_now()
        doctors = (
            db.query(Doctor)
            .filter(Doctor.is_active == True)  # noqa: E712
            .order_by(Doctor.id.asc())
            .all()
        )
        if not doctors:
            return EmergencySlot(found=False, message="No doctors are currently available.")

        today = clinic_now(clinic.timezone, now).date()
        for offset in range(settings.EMERGENCY_SEARCH_DAYS):
            day = today + timedelta(days=offset)
            if not AvailabilityService.is_working_day(clinic, day):
                continue

            best = None
            for doctor in doctors:
                resolved = AvailabilityService.resolve_day(db, clinic, doctor.id, day, now=now)
                if not resolved.open_slots:
                    continue
                first = resolved.open_slots[0]
                # ties go to the lowest doctor id
                if best is None or first.time < best[1].time:
                    best = (doctor, first)

            if best:
                doctor, slot = best
                return EmergencySlot(
                    found=True,
                    doctor_id=doctor.id,
                    doctor_name=doctor.name,
                    date=slot.date,
                    time=slot.time,
                )

        return EmergencySlot(
            found=False,
            message=f"No open slots in the next {settings.EMERGENCY_SEARCH_DAYS} days.",
        )
