from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class AppointmentReminder(Base):
    __tablename__ = "appointment_reminders"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)

    offset_minutes = Column(Integer, nullable=False)
    channel = Column(String(20), nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    # appointment.starts_at - offset_minutes, recomputed on every regeneration
    due_at = Column(DateTime, nullable=False)

    failure_reason = Column(Text, nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    appointment = relationship("Appointment", back_populates="reminders")

    __table_args__ = (
        UniqueConstraint("appointment_id", "offset_minutes", "channel", name="uq_reminder_offset_channel"),
        Index("ix_appointment_reminders_status_due", "status", "due_at"),
    )
