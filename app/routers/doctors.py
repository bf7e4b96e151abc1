# app/routers/doctors.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies.auth import verify_admin_token
from app.schemas.availability import AvailabilityResult
from app.schemas.common import MessageResponse
from app.schemas.doctor import BlockCreate, BlockRead, DoctorListResponse
from app.services.availability_service import AvailabilityService
from app.services.clinic_service import ClinicService
from app.services.doctor_service import DoctorService

router = APIRouter(
    prefix="/admin/doctors",
    tags=["doctors"],
    dependencies=[Depends(verify_admin_token)],
)


@router.get("", response_model=DoctorListResponse)
async def list_doctors(db: Session = Depends(get_db)):
    return {"doctors": DoctorService.list_active(db)}


@router.get("/{doctor_id}/availability", response_model=AvailabilityResult)
async def doctor_availability(
    doctor_id: int,
    query_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
):
    DoctorService.ensure_doctor(db, doctor_id)
    clinic = ClinicService.get_settings(db)
    return AvailabilityService.check_availability(db, clinic, doctor_id, query_date)


@router.get("/{doctor_id}/blocks", response_model=List[BlockRead])
async def list_blocks(
    doctor_id: int,
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return DoctorService.list_blocks(db, doctor_id, from_date, to_date)


@router.post("/{doctor_id}/blocks", response_model=BlockRead, status_code=status.HTTP_201_CREATED)
async def create_block(doctor_id: int, payload: BlockCreate, db: Session = Depends(get_db)):
    """Mark part of a day unavailable. Existing bookings are left untouched."""
    return DoctorService.add_block(db, doctor_id, payload)


@router.delete("/{doctor_id}/blocks/{block_id}", response_model=MessageResponse)
async def delete_block(doctor_id: int, block_id: int, db: Session = Depends(get_db)):
    DoctorService.delete_block(db, doctor_id, block_id)
    return {"message": "Availability block removed"}
