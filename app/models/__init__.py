"""Models package placeholder."""

__all__ = [
    "base",
    "clinic",
    "doctor",
    "patient",
    "appointment",
    "reminder",
]
