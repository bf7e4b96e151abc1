from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base

# Partial unique index backing the per-doctor booking lock
SLOT_INDEX_NAME = "uq_appointments_doctor_start_live"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    reference_number = Column(String(32), unique=True, index=True, nullable=False)

    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    # Clinic-local date/time resolved to an instant, stored as naive UTC
    starts_at = Column(DateTime, nullable=False, index=True)
    # Snapshot of ClinicSettings.appointment_duration at booking time
    duration = Column(Integer, nullable=False, default=30)

    status = Column(String(20), default="scheduled", nullable=False, index=True)
    service = Column(String(200), nullable=False)
    source = Column(String(20), default="chat", nullable=False)
    notes = Column(Text, nullable=True)
    external_event_id = Column(String(255), nullable=True)

    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    doctor = relationship("Doctor", back_populates="appointments")
    patient = relationship("Patient", back_populates="appointments")
    reminders = relationship(
        "AppointmentReminder",
        back_populates="appointment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        # Two live appointments may never share a doctor and start instant.
        Index(
            SLOT_INDEX_NAME,
            "doctor_id",
            "starts_at",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )
