# app/routers/voice.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.constants import AppointmentSource
from app.core.database import get_db
from app.dependencies.auth import verify_voice_agent_token
from app.schemas.appointment import (
    BookingRequest,
    BookingResult,
    CancelRequest,
    CancelResult,
    LookupRequest,
    LookupResult,
    RescheduleRequest,
    RescheduleResult,
)
from app.schemas.availability import AvailabilityRequest, AvailabilityResult, EmergencySlot
from app.schemas.clinic import ServicesResponse
from app.schemas.doctor import DoctorListResponse, DoctorRead
from app.schemas.patient import PatientLookupRequest, PatientLookupResult, PatientRead
from app.services.appointment_service import AppointmentService
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService
from app.services.clinic_service import ClinicService
from app.services.doctor_service import DoctorService
from app.services.patient_service import PatientService
from app.services.session_store import ChannelSessionStore, get_session_store
from app.tasks.notification_tasks import publish_events
from app.utils.errors import unwrap

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/voice",
    tags=["voice"],
    dependencies=[Depends(verify_voice_agent_token)],
)

CHANNEL = AppointmentSource.VOICE.value


@router.get("/doctors", response_model=DoctorListResponse)
async def list_doctors(db: Session = Depends(get_db)):
    doctors = DoctorService.list_active(db)
    return {"doctors": [DoctorRead.model_validate(d) for d in doctors]}


@router.get("/services", response_model=ServicesResponse)
async def list_services(db: Session = Depends(get_db)):
    clinic = ClinicService.get_settings(db)
    return {"clinic_name": clinic.clinic_name, "services": clinic.services or []}


@router.post("/availability", response_model=AvailabilityResult)
async def check_availability(payload: AvailabilityRequest, db: Session = Depends(get_db)):
    DoctorService.ensure_doctor(db, payload.doctor_id)
    clinic = ClinicService.get_settings(db)
    return AvailabilityService.check_availability(db, clinic, payload.doctor_id, payload.date)


@router.post("/book", response_model=BookingResult, status_code=status.HTTP_201_CREATED)
async def book(
    payload: BookingRequest,
    db: Session = Depends(get_db),
    store: ChannelSessionStore = Depends(get_session_store),
):
    """
    Book on behalf of a caller. The source is always ``voice`` regardless of
    what the agent sends.
    """
    request = payload.model_copy(update={"source": AppointmentSource.VOICE})
    result = unwrap(BookingService.validate_and_book(db, request))
    publish_events(result.events)
    await store.update(CHANNEL, result.patient_phone, last_reference_number=result.reference_number)
    return result


@router.post("/lookup", response_model=LookupResult)
async def lookup(
    payload: LookupRequest,
    db: Session = Depends(get_db),
    store: ChannelSessionStore = Depends(get_session_store),
):
    result = unwrap(AppointmentService.lookup(db, payload.reference_number, payload.phone))
    await store.update(CHANNEL, payload.phone, last_reference_number=result.reference_number)
    return result


@router.post("/cancel", response_model=CancelResult)
async def cancel(payload: CancelRequest, db: Session = Depends(get_db)):
    result = unwrap(
        AppointmentService.cancel(db, payload.reference_number, payload.phone, payload.reason)
    )
    publish_events(result.events)
    return result


@router.post("/reschedule", response_model=RescheduleResult)
async def reschedule(payload: RescheduleRequest, db: Session = Depends(get_db)):
    result = unwrap(
        AppointmentService.reschedule(
            db, payload.reference_number, payload.phone, payload.new_date, payload.new_time
        )
    )
    publish_events(result.events)
    return result


@router.get("/emergency-slot", response_model=EmergencySlot)
async def emergency_slot(db: Session = Depends(get_db)):
    clinic = ClinicService.get_settings(db)
    return AvailabilityService.find_emergency_slot(db, clinic)


@router.post("/patients/lookup", response_model=PatientLookupResult)
async def lookup_patient(payload: PatientLookupRequest, db: Session = Depends(get_db)):
    patient = PatientService.find_by_email(db, payload.email)
    if not patient:
        return {"found": False}
    return {"found": True, "patient": PatientRead.model_validate(patient)}


@router.get("/session")
async def get_session(phone: str, store: ChannelSessionStore = Depends(get_session_store)):
    """Conversation state remembered for a caller between requests."""
    return {"phone": phone, "session": await store.load(CHANNEL, phone)}
