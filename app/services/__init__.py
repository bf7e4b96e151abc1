"""Service layer package."""

__all__ = [
    "availability_service",
    "validation_service",
    "booking_service",
    "appointment_service",
    "reminder_service",
    "patient_service",
    "doctor_service",
    "clinic_service",
    "email_service",
    "whatsapp_service",
    "session_store",
]
