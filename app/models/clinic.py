"""Clinic-wide scheduling and reminder policy."""
from datetime import time
from sqlalchemy import Column, String, Integer, Boolean, Time, Text, JSON
from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin

DEFAULT_SERVICES = [
    "General Checkup",
    "Teeth Cleaning",
    "Fillings",
    "Root Canal",
    "Teeth Whitening",
    "Orthodontics",
]


class ClinicSettings(IDMixin, TimestampMixin, Base):
    """Singleton row; read by every booking operation."""

    __tablename__ = "clinic_settings"

    clinic_name = Column(String(255), nullable=False, default="Dental Clinic")
    address = Column(Text, nullable=True)
    phone = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True)

    open_time = Column(Time, nullable=False, default=time(9, 0))
    close_time = Column(Time, nullable=False, default=time(17, 0))
    working_days = Column(JSON, nullable=False, default=lambda: [1, 2, 3, 4, 5])  # Sunday=0
    appointment_duration = Column(Integer, nullable=False, default=30)
    timezone = Column(String(64), nullable=True, default="Europe/Amsterdam")

    reminder_enabled = Column(Boolean, nullable=False, default=True)
    reminder_offsets = Column(JSON, nullable=False, default=lambda: [1440, 60])  # minutes before start
    reminder_channels = Column(JSON, nullable=False, default=lambda: ["email"])

    services = Column(JSON, nullable=False, default=lambda: list(DEFAULT_SERVICES))
    welcome_message = Column(Text, nullable=True)
