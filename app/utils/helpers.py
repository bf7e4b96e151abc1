"""Helper utilities (clock arithmetic in minutes since midnight, reminder wording)."""
from datetime import time
from typing import Union


def to_minutes(value: Union[str, time]) -> int:
    """Minutes since midnight for a ``time`` or an ``HH:MM[:SS]`` string."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = value.strip().split(":")[:2]
    return int(hours) * 60 + int(minutes)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval test: back-to-back ranges do not overlap."""
    return start_a < end_b and start_b < end_a


def reminder_time_label(offset_minutes: int) -> str:
    """Relative wording for a reminder sent ``offset_minutes`` before the visit."""
    if offset_minutes >= 1440:
        days = round(offset_minutes / 1440)
        return "tomorrow" if days == 1 else f"in {days} days"
    if offset_minutes >= 60:
        hours = round(offset_minutes / 60)
        return "in 1 hour" if hours == 1 else f"in {hours} hours"
    return f"in {offset_minutes} minutes"
