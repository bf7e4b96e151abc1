"""Availability schemas."""
from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from app.schemas.common import SlotOption


class DayAvailability(BaseModel):
    open_slots: List[SlotOption] = []
    blocked_periods: List[str] = []


class AvailabilityResult(BaseModel):
    available: bool
    slots: List[str] = []
    blocked_periods: List[str] = []
    message: Optional[str] = None


class EmergencySlot(BaseModel):
    found: bool
    doctor_id: Optional[int] = None
    doctor_name: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    message: Optional[str] = None


class AvailabilityRequest(BaseModel):
    doctor_id: int
    date: date
