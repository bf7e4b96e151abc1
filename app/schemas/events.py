"""Lifecycle events returned by the appointment services for post-commit delivery."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.core.constants import LifecycleEventType


class LifecycleEvent(BaseModel):
    type: LifecycleEventType
    appointment_id: int
    reference_number: str
    starts_at: datetime
    previous_starts_at: Optional[datetime] = None
