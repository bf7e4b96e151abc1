"""Custom error definitions for API exceptions."""
from fastapi import HTTPException
from starlette import status

from app.core.constants import RejectionKind
from app.schemas.common import Rejection

REJECTION_STATUS = {
    RejectionKind.MISSING_INFO: status.HTTP_400_BAD_REQUEST,
    RejectionKind.DOCTOR_NOT_FOUND: status.HTTP_400_BAD_REQUEST,
    RejectionKind.PAST_DATE: status.HTTP_400_BAD_REQUEST,
    RejectionKind.OUTSIDE_WORKING_HOURS: status.HTTP_400_BAD_REQUEST,
    RejectionKind.NOT_WORKING_DAY: status.HTTP_400_BAD_REQUEST,
    RejectionKind.DOCTOR_BLOCKED: status.HTTP_400_BAD_REQUEST,
    RejectionKind.SLOT_UNAVAILABLE: status.HTTP_409_CONFLICT,
    RejectionKind.SLOT_UNAVAILABLE_WITH_ALTERNATIVES: status.HTTP_409_CONFLICT,
    RejectionKind.AUTHORIZATION_FAILURE: status.HTTP_403_FORBIDDEN,
    RejectionKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RejectionKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
}


class RejectionError(HTTPException):
    """Carries an engine Rejection out of a route; the body is the rejection itself."""

    def __init__(self, rejection):
        super().__init__(
            status_code=REJECTION_STATUS.get(rejection.kind, status.HTTP_400_BAD_REQUEST),
            detail=rejection.model_dump(mode="json"),
        )
        self.rejection = rejection


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Missing or invalid Authorization header. Use: Bearer <token>"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class InvalidTokenError(HTTPException):
    def __init__(self, detail: str = "Invalid API token"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class TokenNotConfiguredError(HTTPException):
    def __init__(self, detail: str = "API token not configured on server"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class AppointmentNotFoundError(HTTPException):
    def __init__(self, detail: str = "Appointment not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DoctorNotFoundError(HTTPException):
    def __init__(self, detail: str = "Doctor not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BlockNotFoundError(HTTPException):
    def __init__(self, detail: str = "Availability block not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def unwrap(result):
    """Return an engine result, or raise the HTTP form of a Rejection."""
    if isinstance(result, Rejection):
        raise RejectionError(result)
    return result
