"""Pytest fixtures for the booking engine and the HTTP adapters.

Points the app at a throwaway SQLite database before any ``app`` module is
imported, creates the schema once per session, and provides factories for
doctors, clinic settings and booking requests. Outgoing Celery calls are
patched so no broker is needed.
"""
import os
import uuid
from datetime import date, time, timedelta
from unittest.mock import MagicMock, patch

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_booking.db")
os.environ.setdefault("VOICE_AGENT_API_TOKEN", "test-voice-token")
os.environ.setdefault("ADMIN_API_TOKEN", "test-admin-token")
os.environ.setdefault("EMAIL_BACKEND", "console")
os.environ.setdefault("WHATSAPP_BACKEND", "console")


def next_weekday(start: date, weekday: int) -> date:
    """First date on or after ``start`` with the given Python weekday (Monday=0)."""
    return start + timedelta(days=(weekday - start.weekday()) % 7)


# Far enough ahead that "past date" checks never interfere
FUTURE_MONDAY = next_weekday(date(2099, 1, 1), 0)


class FakeRedis:
    """Dict-backed stand-in for the redis.asyncio client."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex

    async def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    async def close(self):
        pass


@pytest.fixture(scope="session")
def prepare_database():
    """Create clean schema for the test session."""
    from app.core.database import engine, Base

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    yield

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(prepare_database):
    """Yield a SQLAlchemy session for direct DB access in tests."""
    from app.core.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clinic(db_session):
    """Clinic settings reset to the documented defaults for every test."""
    from app.services.clinic_service import ClinicService

    row = ClinicService.get_settings(db_session)
    row.open_time = time(9, 0)
    row.close_time = time(17, 0)
    row.working_days = [1, 2, 3, 4, 5]
    row.appointment_duration = 30
    row.timezone = "Europe/Amsterdam"
    row.reminder_enabled = True
    row.reminder_offsets = [1440, 60]
    row.reminder_channels = ["email"]
    db_session.commit()
    return row


@pytest.fixture
def make_doctor(db_session):
    from app.models.doctor import Doctor

    def _make(name=None, is_active=True):
        doctor = Doctor(
            name=name or f"Doctor {uuid.uuid4().hex[:6]}",
            specialty="General Dentistry",
            is_active=is_active,
        )
        db_session.add(doctor)
        db_session.commit()
        return doctor

    return _make


@pytest.fixture
def doctor(make_doctor):
    return make_doctor()


@pytest.fixture
def make_request():
    """Factory for canonical booking requests with a valid patient identity."""
    from app.schemas.appointment import BookingRequest

    def _make(doctor_id, day=FUTURE_MONDAY, at=time(10, 0), **overrides):
        suffix = uuid.uuid4().hex[:6]
        data = {
            "doctor_id": doctor_id,
            "date": day,
            "time": at,
            "service": "General Checkup",
            "patient_name": "Maria Jansen",
            "patient_phone": f"+31 6 12{int(suffix, 16) % 1000000:06d}",
            "patient_email": f"maria.{suffix}@example.com",
            "source": "chat",
        }
        data.update(overrides)
        return BookingRequest(**data)

    return _make


@pytest.fixture
def book(db_session, clinic, make_request):
    """Book through the real pipeline and return the committed Appointment."""
    from app.models.appointment import Appointment
    from app.services.booking_service import BookingService
    from app.schemas.appointment import BookingResult

    def _book(doctor_id, day=FUTURE_MONDAY, at=time(10, 0), **overrides):
        result = BookingService.validate_and_book(db_session, make_request(doctor_id, day, at, **overrides))
        assert isinstance(result, BookingResult), result
        return db_session.get(Appointment, result.appointment_id)

    return _book


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def session_store(fake_redis):
    from app.cache.cache_service import RedisCache
    from app.services.session_store import ChannelSessionStore

    cache = RedisCache(redis_url="redis://unused")
    cache.redis = fake_redis
    return ChannelSessionStore(cache, ttl=600)


@pytest.fixture
def mock_celery_tasks():
    """Patch the lifecycle task so publishing never touches a broker."""
    with patch("app.tasks.notification_tasks.handle_lifecycle_event") as mock_handle:
        mock_handle.delay = MagicMock()
        yield mock_handle


@pytest.fixture
def voice_headers():
    from app.core.config import settings

    return {"Authorization": f"Bearer {settings.VOICE_AGENT_API_TOKEN}"}


@pytest.fixture
def admin_headers():
    from app.core.config import settings

    return {"Authorization": f"Bearer {settings.ADMIN_API_TOKEN}"}


@pytest.fixture
async def async_client(prepare_database, clinic, session_store, mock_celery_tasks):
    """Provide an httpx AsyncClient configured with the FastAPI app."""
    from httpx import ASGITransport, AsyncClient
    from app.main import create_app
    from app.services.session_store import get_session_store

    app = create_app()
    app.dependency_overrides[get_session_store] = lambda: session_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
