# app/routers/appointments.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.constants import AppointmentStatus
from app.core.database import get_db
from app.dependencies.auth import verify_admin_token
from app.schemas.appointment import (
    AdminCancelRequest,
    AdminRescheduleRequest,
    AppointmentDetail,
    AppointmentListResponse,
    BookingRequest,
    BookingResult,
    CancelResult,
    CompleteResult,
    ReminderRead,
    RescheduleResult,
)
from app.services.appointment_service import AppointmentService
from app.services.booking_service import BookingService
from app.services.reminder_service import ReminderService
from app.tasks.notification_tasks import publish_events
from app.utils.errors import AppointmentNotFoundError, unwrap

router = APIRouter(
    prefix="/admin/appointments",
    tags=["appointments"],
    dependencies=[Depends(verify_admin_token)],
)


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    doctor_id: Optional[int] = Query(None, gt=0),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    items, total = AppointmentService.list_appointments(
        db,
        doctor_id=doctor_id,
        status=status_filter.value if status_filter else None,
        from_date=from_date,
        to_date=to_date,
        skip=skip,
        limit=limit,
    )
    return {"items": [AppointmentDetail.model_validate(a) for a in items], "total": total}


@router.post("", response_model=BookingResult, status_code=status.HTTP_201_CREATED)
async def create_appointment(payload: BookingRequest, db: Session = Depends(get_db)):
    """Staff booking; runs the same checks as every patient channel."""
    result = unwrap(BookingService.validate_and_book(db, payload))
    publish_events(result.events)
    return result


@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    appt = AppointmentService.get_by_id(db, appointment_id)
    if not appt:
        raise AppointmentNotFoundError()
    return appt


@router.post("/{appointment_id}/complete", response_model=CompleteResult)
async def complete_appointment(appointment_id: int, db: Session = Depends(get_db)):
    result = unwrap(AppointmentService.complete(db, appointment_id))
    publish_events(result.events)
    return result


@router.post("/{appointment_id}/cancel", response_model=CancelResult)
async def cancel_appointment(
    appointment_id: int,
    payload: AdminCancelRequest,
    db: Session = Depends(get_db),
):
    result = unwrap(AppointmentService.cancel_by_id(db, appointment_id, payload.reason))
    publish_events(result.events)
    return result


@router.post("/{appointment_id}/reschedule", response_model=RescheduleResult)
async def reschedule_appointment(
    appointment_id: int,
    payload: AdminRescheduleRequest,
    db: Session = Depends(get_db),
):
    result = unwrap(
        AppointmentService.reschedule_by_id(db, appointment_id, payload.new_date, payload.new_time)
    )
    publish_events(result.events)
    return result


@router.get("/{appointment_id}/reminders", response_model=List[ReminderRead])
async def list_reminders(appointment_id: int, db: Session = Depends(get_db)):
    if not AppointmentService.get_by_id(db, appointment_id):
        raise AppointmentNotFoundError()
    return ReminderService.list_for_appointment(db, appointment_id)
