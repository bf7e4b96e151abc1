import logging

from sqlalchemy.orm import Session

from app.models.clinic import ClinicSettings
from app.schemas.clinic import ClinicSettingsUpdate

logger = logging.getLogger(__name__)


class ClinicService:
    @staticmethod
    def get_settings(db: Session) -> ClinicSettings:
        """Return the singleton settings row, creating it with defaults on first use."""
        clinic = db.query(ClinicSettings).order_by(ClinicSettings.id.asc()).first()
        if clinic:
            return clinic

        clinic = ClinicSettings()
        db.add(clinic)
        db.commit()
        db.refresh(clinic)
        logger.info("Created default clinic settings")
        return clinic

    @staticmethod
    def update_settings(db: Session, payload: ClinicSettingsUpdate) -> ClinicSettings:
        clinic = ClinicService.get_settings(db)
        changes = payload.model_dump(mode="json", exclude_unset=True)
        # keep real time objects for the Time columns
        for field in ("open_time", "close_time"):
            if field in changes:
                changes[field] = getattr(payload, field)

        for field, value in changes.items():
            if value is None and field not in ("address", "phone", "email", "welcome_message", "timezone"):
                continue
            setattr(clinic, field, value)

        if clinic.close_time <= clinic.open_time:
            db.rollback()
            raise ValueError("close_time must be after open_time")

        db.commit()
        db.refresh(clinic)
        logger.info(f"Clinic settings updated: {sorted(changes)}")
        return clinic
