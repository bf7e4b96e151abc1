from sqlalchemy import Column, Integer, String, Date, Time, Boolean, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    specialty = Column(String(200), nullable=False, default="General Dentistry")
    bio = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # External calendar linkage; stored and passed through, never interpreted here
    calendar_id = Column(String(255), nullable=True)
    calendar_token = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    blocks = relationship("DoctorAvailabilityBlock", back_populates="doctor", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="doctor")


class DoctorAvailabilityBlock(Base):
    __tablename__ = "doctor_availability_blocks"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=False, nullable=False)  # False = blocked
    reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    doctor = relationship("Doctor", back_populates="blocks")
