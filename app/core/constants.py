"""Application constants such as appointment states, channels and rejection kinds."""
from enum import Enum


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentSource(str, Enum):
    ADMIN = "admin"
    CHAT = "chat"
    VOICE = "voice"
    WHATSAPP = "whatsapp"


class ReminderChannel(str, Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"


class ReminderStatus(str, Enum):
    PENDING = "pending"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"


class RejectionKind(str, Enum):
    MISSING_INFO = "missing_info"
    DOCTOR_NOT_FOUND = "doctor_not_found"
    PAST_DATE = "past_date"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    NOT_WORKING_DAY = "not_working_day"
    DOCTOR_BLOCKED = "doctor_blocked"
    SLOT_UNAVAILABLE = "slot_unavailable"
    SLOT_UNAVAILABLE_WITH_ALTERNATIVES = "slot_unavailable_with_alternatives"
    AUTHORIZATION_FAILURE = "authorization_failure"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"


class LifecycleEventType(str, Enum):
    CREATED = "appointment_created"
    RESCHEDULED = "appointment_rescheduled"
    CANCELLED = "appointment_cancelled"
    COMPLETED = "appointment_completed"


# Sunday=0 .. Saturday=6, matching ClinicSettings.working_days
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

NAME_PLACEHOLDERS = {
    "pending", "unknown", "test", "user", "patient", "name", "n/a", "na", "tbd",
}
PHONE_PLACEHOLDERS = ["0000000", "1234567", "pending", "unknown", "test", "n/a", "na", "tbd"]
