from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.patient import Patient
from app.utils.timezone import utc_now


class PatientService:
    @staticmethod
    def find_by_email(db: Session, email: str) -> Optional[Patient]:
        email = (email or "").strip().lower()
        if not email:
            return None
        return db.query(Patient).filter(func.lower(Patient.email) == email).first()

    @staticmethod
    def find_by_phone(db: Session, phone: str) -> Optional[Patient]:
        phone = (phone or "").strip()
        if not phone:
            return None
        return db.query(Patient).filter(Patient.phone == phone).first()

    @staticmethod
    def upsert(db: Session, name: str, phone: str, email: str) -> Patient:
        """
        Match an existing patient by email, then by phone, and refresh their
        details; otherwise stage a new one. Does not commit.
        """
        name = name.strip()
        phone = phone.strip()
        email = email.strip()

        patient = PatientService.find_by_email(db, email) or PatientService.find_by_phone(db, phone)
        if patient:
            patient.name = name
            patient.phone = phone
            patient.email = email
            patient.updated_at = utc_now()
        else:
            patient = Patient(name=name, phone=phone, email=email)
            db.add(patient)
        db.flush()
        return patient
