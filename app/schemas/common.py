"""Common/shared schemas: typed rejections and generic responses."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.core.constants import RejectionKind


class SlotOption(BaseModel):
    """A bookable (date, time) pair in clinic-local terms."""
    date: str  # YYYY-MM-DD
    time: str  # HH:MM


class Rejection(BaseModel):
    """Returned instead of a result whenever a command cannot be carried out."""
    success: bool = False
    kind: RejectionKind
    message: str
    field: Optional[str] = None
    alternatives: List[SlotOption] = []
    details: Dict[str, Any] = {}


class MessageResponse(BaseModel):
    success: bool = True
    message: str
