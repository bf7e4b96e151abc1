# app/routers/clinic.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies.auth import verify_admin_token
from app.schemas.clinic import ClinicSettingsRead, ClinicSettingsUpdate
from app.services.clinic_service import ClinicService

router = APIRouter(
    prefix="/admin/settings",
    tags=["clinic"],
    dependencies=[Depends(verify_admin_token)],
)


@router.get("", response_model=ClinicSettingsRead)
async def get_settings(db: Session = Depends(get_db)):
    return ClinicService.get_settings(db)


@router.patch("", response_model=ClinicSettingsRead)
async def update_settings(payload: ClinicSettingsUpdate, db: Session = Depends(get_db)):
    """Changes apply to future bookings and reschedules only."""
    try:
        return ClinicService.update_settings(db, payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
