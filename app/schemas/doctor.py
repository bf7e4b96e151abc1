"""Doctor directory and availability block schemas."""
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DoctorRead(BaseModel):
    id: int
    name: str
    specialty: str
    email: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class DoctorListResponse(BaseModel):
    doctors: List[DoctorRead]


class BlockCreate(BaseModel):
    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = Field(default=None, max_length=500)

    @field_validator("end_time")
    def validate_time_order(cls, v, info):
        start_time = info.data.get("start_time") if info and info.data else None
        if start_time and v <= start_time:
            raise ValueError("end_time must be after start_time")
        return v


class BlockRead(BaseModel):
    id: int
    doctor_id: int
    date: date
    start_time: time
    end_time: time
    is_available: bool
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
