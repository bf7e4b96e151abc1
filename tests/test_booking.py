"""Booking pipeline: identity, temporal, hours, working days, blocks, conflicts."""
from datetime import date, datetime, time, timedelta

import pytest

from app.core.constants import AppointmentStatus, LifecycleEventType, RejectionKind, ReminderStatus
from app.models.appointment import Appointment
from app.models.doctor import DoctorAvailabilityBlock
from app.models.patient import Patient
from app.models.reminder import AppointmentReminder
from app.schemas.appointment import BookingResult
from app.schemas.common import Rejection
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService

from conftest import FUTURE_MONDAY


def _book(db, request, now=None):
    return BookingService.validate_and_book(db, request, now=now)


# ============================================================================
# IDENTITY
# ============================================================================

@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"patient_name": None}, "patient_name"),
        ({"patient_name": "J"}, "patient_name"),
        ({"patient_name": "Test"}, "patient_name"),
        ({"patient_name": "pending"}, "patient_name"),
        ({"patient_name": "John John"}, "patient_name"),
        ({"patient_phone": "12345"}, "patient_phone"),
        ({"patient_phone": "0000000"}, "patient_phone"),
        ({"patient_phone": "unknown"}, "patient_phone"),
        ({"patient_email": ""}, "patient_email"),
        ({"patient_email": "maria.example.com"}, "patient_email"),
    ],
)
def test_identity_problems_return_missing_info(db_session, clinic, doctor, make_request, overrides, field):
    result = _book(db_session, make_request(doctor.id, **overrides))

    assert isinstance(result, Rejection)
    assert result.kind == RejectionKind.MISSING_INFO
    assert result.field == field
    assert result.message


def test_identity_is_checked_before_the_slot(db_session, clinic, doctor, make_request):
    sunday = FUTURE_MONDAY - timedelta(days=1)
    result = _book(db_session, make_request(doctor.id, day=sunday, patient_name="n/a"))
    assert result.kind == RejectionKind.MISSING_INFO


# ============================================================================
# DOCTOR
# ============================================================================

def test_unknown_doctor_is_rejected(db_session, clinic, make_request):
    result = _book(db_session, make_request(987654))
    assert result.kind == RejectionKind.DOCTOR_NOT_FOUND


def test_inactive_doctor_is_rejected(db_session, clinic, make_doctor, make_request):
    retired = make_doctor(is_active=False)
    result = _book(db_session, make_request(retired.id))
    assert result.kind == RejectionKind.DOCTOR_NOT_FOUND


# ============================================================================
# TEMPORAL / HOURS / DAYS
# ============================================================================

def test_past_date_is_rejected(db_session, clinic, doctor, make_request):
    result = _book(db_session, make_request(doctor.id, day=date(2001, 1, 1)))
    assert result.kind == RejectionKind.PAST_DATE
    assert result.field == "date"


def test_same_day_time_already_passed(db_session, clinic, doctor, make_request):
    # 13:00 local
    now = datetime.combine(FUTURE_MONDAY, time(12, 0))

    result = _book(db_session, make_request(doctor.id, at=time(10, 0)), now=now)
    assert result.kind == RejectionKind.PAST_DATE
    assert result.field == "time"

    later = _book(db_session, make_request(doctor.id, at=time(14, 0)), now=now)
    assert isinstance(later, BookingResult)


def test_booking_the_current_minute_is_accepted(db_session, clinic, doctor, make_request):
    # 14:00:00 local exactly
    now = datetime.combine(FUTURE_MONDAY, time(13, 0))
    result = _book(db_session, make_request(doctor.id, at=time(14, 0)), now=now)
    assert isinstance(result, BookingResult)


def test_booking_a_minute_that_started_seconds_ago_is_rejected(db_session, clinic, doctor, make_request):
    now = datetime.combine(FUTURE_MONDAY, time(13, 0, 30))
    result = _book(db_session, make_request(doctor.id, at=time(14, 0)), now=now)
    assert result.kind == RejectionKind.PAST_DATE
    assert result.field == "time"


def test_last_slot_of_the_day_is_accepted(db_session, clinic, doctor, make_request):
    result = _book(db_session, make_request(doctor.id, at=time(16, 30)))
    assert isinstance(result, BookingResult)


def test_one_minute_past_last_slot_is_rejected(db_session, clinic, doctor, make_request):
    result = _book(db_session, make_request(doctor.id, at=time(16, 31)))
    assert result.kind == RejectionKind.OUTSIDE_WORKING_HOURS


def test_before_opening_is_rejected(db_session, clinic, doctor, make_request):
    result = _book(db_session, make_request(doctor.id, at=time(8, 30)))
    assert result.kind == RejectionKind.OUTSIDE_WORKING_HOURS
    assert result.details["open_time"] == "09:00"


def test_sunday_is_not_a_working_day(db_session, clinic, doctor, make_request):
    sunday = FUTURE_MONDAY - timedelta(days=1)

    result = _book(db_session, make_request(doctor.id, day=sunday))

    assert result.kind == RejectionKind.NOT_WORKING_DAY
    assert result.alternatives == []


# ============================================================================
# BLOCKS
# ============================================================================

def test_booking_inside_a_block_is_rejected(db_session, clinic, doctor, make_request):
    db_session.add(DoctorAvailabilityBlock(
        doctor_id=doctor.id, date=FUTURE_MONDAY, start_time=time(12, 0), end_time=time(13, 0),
        is_available=False, reason="Lunch",
    ))
    db_session.commit()

    result = _book(db_session, make_request(doctor.id, at=time(12, 30)))

    assert result.kind == RejectionKind.DOCTOR_BLOCKED
    assert "12:00 - 13:00 (Lunch)" in result.message
    assert result.details["reason"] == "Lunch"


def test_booking_ending_at_block_start_is_accepted(db_session, clinic, doctor, make_request):
    db_session.add(DoctorAvailabilityBlock(
        doctor_id=doctor.id, date=FUTURE_MONDAY, start_time=time(12, 0), end_time=time(13, 0),
        is_available=False,
    ))
    db_session.commit()

    assert isinstance(_book(db_session, make_request(doctor.id, at=time(11, 30))), BookingResult)
    assert isinstance(_book(db_session, make_request(doctor.id, at=time(13, 0))), BookingResult)


def test_block_created_after_booking_keeps_the_booking(db_session, clinic, doctor, book):
    appt = book(doctor.id, at=time(14, 0))
    db_session.add(DoctorAvailabilityBlock(
        doctor_id=doctor.id, date=FUTURE_MONDAY, start_time=time(13, 0), end_time=time(16, 0),
        is_available=False,
    ))
    db_session.commit()

    db_session.refresh(appt)
    assert appt.status == AppointmentStatus.SCHEDULED.value


# ============================================================================
# SUCCESS
# ============================================================================

def test_first_booking_removes_slot_from_day(db_session, clinic, doctor, make_request):
    request = make_request(doctor.id, at=time(9, 0))

    result = _book(db_session, request)

    assert isinstance(result, BookingResult)
    assert result.reference_number.startswith("DC")
    assert result.date == FUTURE_MONDAY
    assert result.time == "09:00"
    assert result.duration == 30
    assert result.doctor_name == doctor.name

    times = [s.time for s in AvailabilityService.resolve_day(db_session, clinic, doctor.id, FUTURE_MONDAY).open_slots]
    assert "09:00" not in times
    assert len(times) == 15


def test_booking_stores_utc_instant_and_snapshot_duration(db_session, clinic, doctor, book):
    appt = book(doctor.id, at=time(9, 0))

    # Amsterdam is UTC+1 in winter
    assert appt.starts_at == datetime.combine(FUTURE_MONDAY, time(8, 0))
    assert appt.duration == 30
    assert appt.status == AppointmentStatus.SCHEDULED.value

    clinic.appointment_duration = 60
    db_session.commit()
    db_session.refresh(appt)
    assert appt.duration == 30


def test_booking_returns_created_event_outside_the_payload(db_session, clinic, doctor, make_request):
    result = _book(db_session, make_request(doctor.id, at=time(11, 0)))

    assert [e.type for e in result.events] == [LifecycleEventType.CREATED]
    assert result.events[0].appointment_id == result.appointment_id
    assert "events" not in result.model_dump()


def test_booking_schedules_reminders(db_session, clinic, doctor, book):
    appt = book(doctor.id, at=time(15, 0))

    reminders = db_session.query(AppointmentReminder).filter(AppointmentReminder.appointment_id == appt.id).all()
    assert sorted(r.offset_minutes for r in reminders) == [60, 1440]
    assert all(r.status == ReminderStatus.PENDING.value for r in reminders)
    assert {r.due_at for r in reminders} == {
        appt.starts_at - timedelta(minutes=1440),
        appt.starts_at - timedelta(minutes=60),
    }


def test_repeat_patient_is_updated_not_duplicated(db_session, clinic, doctor, make_request):
    first = _book(db_session, make_request(doctor.id, at=time(9, 0), patient_email="repeat.patient@example.com"))
    second = _book(db_session, make_request(
        doctor.id, at=time(9, 30), patient_email="repeat.patient@example.com", patient_name="Maria de Vries",
    ))

    patients = db_session.query(Patient).filter(Patient.email == "repeat.patient@example.com").all()
    assert len(patients) == 1
    assert patients[0].name == "Maria de Vries"
    a1 = db_session.get(Appointment, first.appointment_id)
    a2 = db_session.get(Appointment, second.appointment_id)
    assert a1.patient_id == a2.patient_id


def test_patient_matched_by_phone_when_email_is_new(db_session, clinic, doctor, make_request):
    _book(db_session, make_request(doctor.id, at=time(9, 0), patient_phone="+31 6 5555 0101"))
    _book(db_session, make_request(
        doctor.id, at=time(10, 0), patient_phone="+31 6 5555 0101", patient_email="new.address@example.com",
    ))

    patients = db_session.query(Patient).filter(Patient.phone == "+31 6 5555 0101").all()
    assert len(patients) == 1
    assert patients[0].email == "new.address@example.com"


# ============================================================================
# CONFLICTS
# ============================================================================

def test_overlapping_request_offers_earliest_alternatives(db_session, clinic, doctor, book, make_request):
    book(doctor.id, at=time(10, 0))

    result = _book(db_session, make_request(doctor.id, at=time(10, 15)))

    assert result.kind == RejectionKind.SLOT_UNAVAILABLE_WITH_ALTERNATIVES
    assert [(a.date, a.time) for a in result.alternatives] == [
        (FUTURE_MONDAY.isoformat(), "09:00"),
        (FUTURE_MONDAY.isoformat(), "09:30"),
        (FUTURE_MONDAY.isoformat(), "10:30"),
    ]


def test_conflict_without_alternatives(db_session, clinic, doctor, make_request):
    friday = FUTURE_MONDAY + timedelta(days=4)
    db_session.add(DoctorAvailabilityBlock(
        doctor_id=doctor.id, date=friday, start_time=time(9, 0), end_time=time(14, 0), is_available=False,
    ))
    db_session.add(DoctorAvailabilityBlock(
        doctor_id=doctor.id, date=friday, start_time=time(14, 30), end_time=time(17, 0), is_available=False,
    ))
    db_session.commit()
    assert isinstance(_book(db_session, make_request(doctor.id, day=friday, at=time(14, 0))), BookingResult)

    result = _book(db_session, make_request(doctor.id, day=friday, at=time(14, 0)))

    assert result.kind == RejectionKind.SLOT_UNAVAILABLE
    assert result.alternatives == []


def test_cancelled_slot_can_be_booked_again(db_session, clinic, doctor, book, make_request):
    appt = book(doctor.id, at=time(13, 0))
    appt.status = AppointmentStatus.CANCELLED.value
    db_session.commit()

    assert isinstance(_book(db_session, make_request(doctor.id, at=time(13, 0))), BookingResult)
