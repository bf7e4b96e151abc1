"""Clinic settings schemas."""
from datetime import time
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.constants import ReminderChannel


class ClinicSettingsRead(BaseModel):
    clinic_name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    open_time: time
    close_time: time
    working_days: List[int]
    appointment_duration: int
    timezone: Optional[str] = None
    reminder_enabled: bool
    reminder_offsets: List[int]
    reminder_channels: List[str]
    services: List[str]
    welcome_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ClinicSettingsUpdate(BaseModel):
    clinic_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    working_days: Optional[List[int]] = None
    appointment_duration: Optional[int] = Field(default=None, gt=0, le=480)
    timezone: Optional[str] = None
    reminder_enabled: Optional[bool] = None
    reminder_offsets: Optional[List[int]] = None
    reminder_channels: Optional[List[ReminderChannel]] = None
    services: Optional[List[str]] = None
    welcome_message: Optional[str] = None

    @field_validator("close_time")
    def validate_time_order(cls, v, info):
        open_time = info.data.get("open_time") if info and info.data else None
        if v and open_time and v <= open_time:
            raise ValueError("close_time must be after open_time")
        return v

    @field_validator("working_days")
    def validate_working_days(cls, v):
        if v is not None and any(day < 0 or day > 6 for day in v):
            raise ValueError("working_days must be weekday numbers 0-6 (Sunday=0)")
        return sorted(set(v)) if v is not None else v

    @field_validator("reminder_offsets")
    def validate_offsets(cls, v):
        if v is not None and any(offset <= 0 for offset in v):
            raise ValueError("reminder_offsets must be positive minute counts")
        return sorted(set(v), reverse=True) if v is not None else v

    @field_validator("timezone")
    def validate_timezone(cls, v):
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"Unknown timezone: {v}")
        return v


class ServicesResponse(BaseModel):
    clinic_name: str
    services: List[str]
