import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.models.doctor import Doctor, DoctorAvailabilityBlock
from app.schemas.doctor import BlockCreate
from app.utils.errors import BlockNotFoundError, DoctorNotFoundError
from app.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class DoctorService:
    @staticmethod
    def get_by_id(db: Session, doctor_id: int) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.id == doctor_id).first()

    @staticmethod
    def ensure_doctor(db: Session, doctor_id: int) -> Doctor:
        doctor = DoctorService.get_by_id(db, doctor_id)
        if not doctor:
            raise DoctorNotFoundError()
        return doctor

    @staticmethod
    def lock_for_booking(db: Session, doctor_id: int) -> Optional[Doctor]:
        """
        Take the per-doctor booking lock for the rest of the current transaction.

        A guarded UPDATE rather than SELECT ... FOR UPDATE: it row-locks on
        PostgreSQL and takes the database write lock on SQLite, so a second
        booking or reschedule for the same doctor waits here until the first
        one commits or rolls back. Returns None for an unknown doctor.
        """
        result = db.execute(
            update(Doctor)
            .where(Doctor.id == doctor_id)
            .values(updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        return db.get(Doctor, doctor_id, populate_existing=True)

    @staticmethod
    def list_active(db: Session) -> List[Doctor]:
        return (
            db.query(Doctor)
            .filter(Doctor.is_active == True)  # noqa: E712
            .order_by(Doctor.name.asc())
            .all()
        )

    # -------------------------------------------------------------------------
    # Availability blocks
    # -------------------------------------------------------------------------
    @staticmethod
    def add_block(db: Session, doctor_id: int, payload: BlockCreate) -> DoctorAvailabilityBlock:
        DoctorService.ensure_doctor(db, doctor_id)
        block = DoctorAvailabilityBlock(
            doctor_id=doctor_id,
            date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            is_available=False,
            reason=payload.reason,
        )
        db.add(block)
        db.commit()
        db.refresh(block)
        logger.info(
            f"Doctor {doctor_id} blocked {payload.date} {payload.start_time}-{payload.end_time}"
        )
        return block

    @staticmethod
    def list_blocks(
        db: Session,
        doctor_id: int,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[DoctorAvailabilityBlock]:
        DoctorService.ensure_doctor(db, doctor_id)
        q = db.query(DoctorAvailabilityBlock).filter(DoctorAvailabilityBlock.doctor_id == doctor_id)
        if from_date:
            q = q.filter(DoctorAvailabilityBlock.date >= from_date)
        if to_date:
            q = q.filter(DoctorAvailabilityBlock.date <= to_date)
        return q.order_by(
            DoctorAvailabilityBlock.date.asc(), DoctorAvailabilityBlock.start_time.asc()
        ).all()

    @staticmethod
    def delete_block(db: Session, doctor_id: int, block_id: int) -> None:
        block = (
            db.query(DoctorAvailabilityBlock)
            .filter(
                DoctorAvailabilityBlock.id == block_id,
                DoctorAvailabilityBlock.doctor_id == doctor_id,
            )
            .first()
        )
        if not block:
            raise BlockNotFoundError()
        db.delete(block)
        db.commit()
