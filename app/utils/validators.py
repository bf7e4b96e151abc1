"""Patient identity checks shared by all booking channels."""
import re
from typing import Optional

from app.core.config import settings
from app.core.constants import NAME_PLACEHOLDERS, PHONE_PLACEHOLDERS


def digits_only(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def phone_matches(stored: Optional[str], presented: Optional[str]) -> bool:
    """Compare the trailing PHONE_MATCH_DIGITS digits of two numbers.

    Tolerates formatting differences (spaces, country prefix, dashes).
    """
    width = settings.PHONE_MATCH_DIGITS
    stored_digits = digits_only(stored)[-width:]
    presented_digits = digits_only(presented)[-width:]
    if not stored_digits or not presented_digits:
        return False
    return stored_digits == presented_digits


def is_placeholder_name(name: str) -> bool:
    parts = name.lower().split()
    if any(part in NAME_PLACEHOLDERS for part in parts):
        return True
    return len(parts) >= 2 and parts[0] == parts[1]


def is_placeholder_phone(phone: str) -> bool:
    lowered = phone.lower()
    return any(token in lowered for token in PHONE_PLACEHOLDERS)
