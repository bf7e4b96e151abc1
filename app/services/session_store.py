"""Per-conversation state for channel adapters (WhatsApp, voice, chat)."""
import logging
from typing import Any, Dict, Optional

from app.cache.cache_service import RedisCache, redis_cache
from app.core.config import settings

logger = logging.getLogger(__name__)


class ChannelSessionStore:
    """
    Session state keyed by channel and caller identity (phone number, chat id).

    Entries expire after ``ttl`` seconds of inactivity; every save refreshes
    the expiry. Adapters receive the store through ``get_session_store`` so
    tests can swap in their own backend.
    """

    def __init__(self, cache: RedisCache, ttl: Optional[int] = None):
        self.cache = cache
        self.ttl = ttl or settings.SESSION_TTL_SECONDS

    @staticmethod
    def key(channel: str, identity: str) -> str:
        return f"session:{channel}:{identity.strip()}"

    async def load(self, channel: str, identity: str) -> Dict[str, Any]:
        data = await self.cache.get_json(self.key(channel, identity))
        return data if isinstance(data, dict) else {}

    async def save(self, channel: str, identity: str, data: Dict[str, Any]) -> None:
        await self.cache.set_json(self.key(channel, identity), data, ttl=self.ttl)

    async def update(self, channel: str, identity: str, **changes: Any) -> Dict[str, Any]:
        data = await self.load(channel, identity)
        data.update(changes)
        await self.save(channel, identity, data)
        return data

    async def clear(self, channel: str, identity: str) -> None:
        await self.cache.delete(self.key(channel, identity))
        logger.debug(f"Cleared {channel} session for {identity}")


def get_session_store() -> ChannelSessionStore:
    return ChannelSessionStore(redis_cache)
