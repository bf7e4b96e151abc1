"""Availability resolver, alternative search and emergency search."""
import random
import uuid
from datetime import datetime, time, timedelta

from app.core.constants import AppointmentStatus
from app.models.appointment import Appointment
from app.models.doctor import DoctorAvailabilityBlock
from app.models.patient import Patient
from app.services.availability_service import AvailabilityService
from app.utils.helpers import overlaps, to_minutes
from app.utils.timezone import clinic_time_to_utc

from conftest import FUTURE_MONDAY


def _insert_appointment(db, clinic, doctor_id, day, start_minutes, duration=30, status="scheduled"):
    patient = Patient(name="Seed Patient", phone="+31600000001", email=f"seed.{uuid.uuid4().hex[:6]}@example.com")
    db.add(patient)
    db.flush()
    appt = Appointment(
        reference_number=f"T{uuid.uuid4().hex[:10].upper()}",
        doctor_id=doctor_id,
        patient_id=patient.id,
        starts_at=clinic_time_to_utc(day, time(start_minutes // 60, start_minutes % 60), clinic.timezone),
        duration=duration,
        status=status,
        service="Teeth Cleaning",
        source="admin",
    )
    db.add(appt)
    db.commit()
    return appt


def _add_block(db, doctor_id, day, start, end, reason=None):
    block = DoctorAvailabilityBlock(
        doctor_id=doctor_id, date=day, start_time=start, end_time=end, is_available=False, reason=reason
    )
    db.add(block)
    db.commit()
    return block


# ============================================================================
# RESOLVER
# ============================================================================

def test_empty_day_has_every_step_until_close_minus_duration(db_session, clinic, doctor):
    result = AvailabilityService.resolve_day(db_session, clinic, doctor.id, FUTURE_MONDAY)

    times = [s.time for s in result.open_slots]
    assert times[0] == "09:00"
    assert times[-1] == "16:30"
    assert len(times) == 16
    assert result.blocked_periods == []


def test_step_is_independent_of_duration(db_session, clinic, doctor):
    clinic.appointment_duration = 45
    db_session.commit()

    result = AvailabilityService.resolve_day(db_session, clinic, doctor.id, FUTURE_MONDAY)

    times = [s.time for s in result.open_slots]
    assert times[:3] == ["09:00", "09:30", "10:00"]
    # 16:00 + 45 > 17:00
    assert times[-1] == "16:00"


def test_non_working_day_returns_nothing(db_session, clinic, doctor):
    sunday = FUTURE_MONDAY - timedelta(days=1)
    result = AvailabilityService.resolve_day(db_session, clinic, doctor.id, sunday)
    assert result.open_slots == []
    assert result.blocked_periods == []


def test_blocked_periods_are_reported_and_excluded(db_session, clinic, doctor):
    _add_block(db_session, doctor.id, FUTURE_MONDAY, time(12, 0), time(13, 0), reason="Lunch")
    _add_block(db_session, doctor.id, FUTURE_MONDAY, time(15, 0), time(15, 45))

    result = AvailabilityService.resolve_day(db_session, clinic, doctor.id, FUTURE_MONDAY)
    times = [s.time for s in result.open_slots]

    assert result.blocked_periods == ["12:00 - 13:00 (Lunch)", "15:00 - 15:45"]
    assert "11:30" in times
    assert "12:00" not in times and "12:30" not in times
    assert "13:00" in times
    assert "15:00" not in times and "15:30" not in times
    assert "16:00" in times


def test_back_to_back_slots_are_open(db_session, clinic, doctor):
    _insert_appointment(db_session, clinic, doctor.id, FUTURE_MONDAY, 10 * 60)

    times = [s.time for s in AvailabilityService.resolve_day(db_session, clinic, doctor.id, FUTURE_MONDAY).open_slots]
    assert "09:30" in times
    assert "10:00" not in times
    assert "10:30" in times


def test_cancelled_appointments_do_not_block(db_session, clinic, doctor):
    _insert_appointment(db_session, clinic, doctor.id, FUTURE_MONDAY, 11 * 60, status=AppointmentStatus.CANCELLED.value)

    times = [s.time for s in AvailabilityService.resolve_day(db_session, clinic, doctor.id, FUTURE_MONDAY).open_slots]
    assert "11:00" in times


def test_other_doctors_appointments_do_not_block(db_session, clinic, make_doctor):
    first, second = make_doctor(), make_doctor()
    _insert_appointment(db_session, clinic, first.id, FUTURE_MONDAY, 9 * 60)

    times = [s.time for s in AvailabilityService.resolve_day(db_session, clinic, second.id, FUTURE_MONDAY).open_slots]
    assert "09:00" in times


def test_no_slot_ever_overlaps_busy_intervals(db_session, clinic, make_doctor):
    rng = random.Random(20240601)
    day = FUTURE_MONDAY + timedelta(days=1)

    for _ in range(5):
        doctor = make_doctor()
        busy = []
        starts = rng.sample(range(9 * 60, 17 * 60, 15), 6)
        for start in starts:
            duration = rng.choice([15, 30, 45, 60])
            cancelled = rng.random() < 0.3
            _insert_appointment(
                db_session, clinic, doctor.id, day, start, duration,
                status="cancelled" if cancelled else "scheduled",
            )
            if not cancelled:
                busy.append((start, start + duration))
        block_start = rng.choice(range(9 * 60, 16 * 60, 15))
        _add_block(db_session, doctor.id, day, time(block_start // 60, block_start % 60),
                   time((block_start + 40) // 60, (block_start + 40) % 60))
        busy.append((block_start, block_start + 40))

        result = AvailabilityService.resolve_day(db_session, clinic, doctor.id, day)
        for slot in result.open_slots:
            start = to_minutes(slot.time)
            end = start + clinic.appointment_duration
            assert not any(overlaps(start, end, s, e) for s, e in busy), (slot, busy)
            assert end <= 17 * 60


def test_today_skips_slots_already_started(db_session, clinic, doctor):
    # 11:10 in Amsterdam (UTC+1 in January)
    now = datetime.combine(FUTURE_MONDAY, time(10, 10))

    times = [s.time for s in AvailabilityService.resolve_day(db_session, clinic, doctor.id, FUTURE_MONDAY, now=now).open_slots]
    assert times[0] == "11:30"


# ============================================================================
# CHECK AVAILABILITY
# ============================================================================

def test_check_availability_formats_slots(db_session, clinic, doctor):
    _add_block(db_session, doctor.id, FUTURE_MONDAY, time(9, 0), time(12, 0), reason="Training")

    result = AvailabilityService.check_availability(db_session, clinic, doctor.id, FUTURE_MONDAY)

    assert result.available is True
    assert result.slots[0] == "12:00"
    assert result.blocked_periods == ["09:00 - 12:00 (Training)"]


def test_check_availability_closed_day(db_session, clinic, doctor):
    saturday = FUTURE_MONDAY + timedelta(days=5)
    result = AvailabilityService.check_availability(db_session, clinic, doctor.id, saturday)

    assert result.available is False
    assert "Saturday" in result.message


def test_fully_blocked_day_is_unavailable(db_session, clinic, doctor):
    _add_block(db_session, doctor.id, FUTURE_MONDAY, time(8, 0), time(18, 0), reason="Conference")

    result = AvailabilityService.check_availability(db_session, clinic, doctor.id, FUTURE_MONDAY)
    assert result.available is False
    assert result.slots == []


# ============================================================================
# ALTERNATIVE SEARCH
# ============================================================================

def test_alternatives_prefer_requested_day_and_cap(db_session, clinic, doctor):
    slots = AvailabilityService.find_available_slots(db_session, clinic, doctor.id, FUTURE_MONDAY)

    assert [(s.date, s.time) for s in slots] == [
        (FUTURE_MONDAY.isoformat(), "09:00"),
        (FUTURE_MONDAY.isoformat(), "09:30"),
        (FUTURE_MONDAY.isoformat(), "10:00"),
    ]


def test_alternatives_roll_over_to_next_day(db_session, clinic, doctor):
    _add_block(db_session, doctor.id, FUTURE_MONDAY, time(9, 0), time(16, 0))

    slots = AvailabilityService.find_available_slots(db_session, clinic, doctor.id, FUTURE_MONDAY)

    tuesday = (FUTURE_MONDAY + timedelta(days=1)).isoformat()
    assert [(s.date, s.time) for s in slots] == [
        (FUTURE_MONDAY.isoformat(), "16:00"),
        (FUTURE_MONDAY.isoformat(), "16:30"),
        (tuesday, "09:00"),
    ]


def test_alternatives_horizon_is_two_days(db_session, clinic, doctor):
    friday = FUTURE_MONDAY + timedelta(days=4)
    _add_block(db_session, doctor.id, friday, time(9, 0), time(17, 0))

    # Saturday is closed and Monday lies beyond the horizon
    assert AvailabilityService.find_available_slots(db_session, clinic, doctor.id, friday) == []


def test_alternatives_follow_configuration(db_session, clinic, doctor, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "ALTERNATIVE_SLOT_LIMIT", 5)
    friday = FUTURE_MONDAY + timedelta(days=4)
    _add_block(db_session, doctor.id, friday, time(9, 0), time(17, 0))
    monkeypatch.setattr(settings, "ALTERNATIVE_SEARCH_DAYS", 4)

    slots = AvailabilityService.find_available_slots(db_session, clinic, doctor.id, friday)

    next_monday = (friday + timedelta(days=3)).isoformat()
    assert len(slots) == 5
    assert all(s.date == next_monday for s in slots)


# ============================================================================
# EMERGENCY SLOT
# ============================================================================

def test_emergency_slot_is_the_earliest_open_time(db_session, clinic, doctor):
    # 09:00:30 local on a Monday; 09:00 itself has started
    now = datetime.combine(FUTURE_MONDAY, time(8, 0, 30))

    result = AvailabilityService.find_emergency_slot(db_session, clinic, now=now)

    assert result.found is True
    assert result.date == FUTURE_MONDAY.isoformat()
    assert result.time == "09:30"


def test_slot_starting_this_very_minute_is_still_offered(db_session, clinic, doctor):
    # exactly 09:00:00 local
    now = datetime.combine(FUTURE_MONDAY, time(8, 0))

    result = AvailabilityService.find_emergency_slot(db_session, clinic, now=now)
    assert result.time == "09:00"

    later = datetime.combine(FUTURE_MONDAY, time(8, 0, 1))
    times = [s.time for s in AvailabilityService.resolve_day(db_session, clinic, doctor.id, FUTURE_MONDAY, now=later).open_slots]
    assert times[0] == "09:30"


def test_emergency_slot_skips_closed_days(db_session, clinic, doctor):
    saturday = FUTURE_MONDAY + timedelta(days=5)
    now = datetime.combine(saturday, time(8, 0))

    result = AvailabilityService.find_emergency_slot(db_session, clinic, now=now)

    assert result.found is True
    assert result.date == (saturday + timedelta(days=2)).isoformat()
    assert result.time == "09:00"
