import hmac
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import settings
from app.utils.errors import InvalidTokenError, TokenNotConfiguredError, Unauthorized

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _verify_static_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    expected: Optional[str],
    name: str,
) -> None:
    if not expected:
        logger.error(f"{name} is not configured; rejecting request")
        raise TokenNotConfiguredError()
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized()
    if not hmac.compare_digest(credentials.credentials.encode(), expected.encode()):
        logger.warning(f"Invalid {name} presented")
        raise InvalidTokenError()


async def verify_voice_agent_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
):
    """Guard for the voice-agent REST adapter."""
    _verify_static_token(credentials, settings.VOICE_AGENT_API_TOKEN, "VOICE_AGENT_API_TOKEN")


async def verify_admin_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
):
    """Guard for clinic staff endpoints."""
    _verify_static_token(credentials, settings.ADMIN_API_TOKEN, "ADMIN_API_TOKEN")
