"""Appointment command and result schemas shared by every channel."""
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import AppointmentSource
from app.schemas.events import LifecycleEvent


class BookingRequest(BaseModel):
    """Canonical booking command.

    Identity fields are optional at the schema level so that missing values
    come back as a ``missing_info`` rejection with a prompt instead of a 422.
    """
    doctor_id: int
    date: date
    time: time
    service: str = Field(..., min_length=1, max_length=200)
    patient_name: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_email: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    source: AppointmentSource = AppointmentSource.CHAT


class LookupRequest(BaseModel):
    reference_number: str = Field(..., min_length=1, max_length=32)
    phone: str = Field(..., min_length=1, max_length=32)


class CancelRequest(LookupRequest):
    reason: Optional[str] = Field(default=None, max_length=2000)


class RescheduleRequest(LookupRequest):
    new_date: date
    new_time: time


class AdminRescheduleRequest(BaseModel):
    new_date: date
    new_time: time


class AdminCancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=2000)


class BookingResult(BaseModel):
    success: bool = True
    appointment_id: int
    reference_number: str
    doctor_id: int
    doctor_name: str
    date: date
    time: str
    duration: int
    service: str
    patient_name: str
    patient_phone: str
    patient_email: str
    source: AppointmentSource
    events: List[LifecycleEvent] = Field(default_factory=list, exclude=True)


class RescheduleResult(BaseModel):
    success: bool = True
    appointment_id: int
    reference_number: str
    old_date: date
    old_time: str
    new_date: date
    new_time: str
    events: List[LifecycleEvent] = Field(default_factory=list, exclude=True)


class CancelResult(BaseModel):
    success: bool = True
    appointment_id: int
    reference_number: str
    status: str
    events: List[LifecycleEvent] = Field(default_factory=list, exclude=True)


class CompleteResult(CancelResult):
    completed_at: datetime


class LookupResult(BaseModel):
    success: bool = True
    appointment_id: int
    reference_number: str
    doctor_name: str
    patient_name: str
    service: str
    date: date
    time: str
    duration: int
    status: str


class ReminderRead(BaseModel):
    id: int
    offset_minutes: int
    channel: str
    status: str
    due_at: datetime
    sent_at: Optional[datetime] = None
    failure_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AppointmentDetail(BaseModel):
    id: int
    reference_number: str
    doctor_id: int
    patient_id: int
    starts_at: datetime
    duration: int
    status: str
    service: str
    source: str
    notes: Optional[str] = None
    external_event_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AppointmentListResponse(BaseModel):
    items: List[AppointmentDetail]
    total: int
