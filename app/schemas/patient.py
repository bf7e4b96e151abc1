"""Patient schemas."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PatientLookupRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class PatientRead(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PatientLookupResult(BaseModel):
    found: bool
    patient: Optional[PatientRead] = None
