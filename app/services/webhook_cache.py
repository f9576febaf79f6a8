"""Redis cache mapping public webhook UUIDs to internal webhook ids."""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import redis

from app.config import get_settings
from app.errors import CacheUnavailable

CACHE_KEY_PREFIX = "webhook:uuid:"
DEFAULT_TTL_SECONDS = 3600

logger = logging.getLogger(__name__)


@dataclass
class CacheOutcome:
    """Result of a best-effort cache write or eviction."""

    ok: bool
    error: Optional[str] = None


class WebhookIdCache:
    """Best-effort lookup hint for the capture path.

    The database stays the source of truth: every failure here is logged and
    turned into a miss or a no-op, never raised to the caller.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        """
        Args:
            redis_client: Redis client. If None, caching is disabled.
            ttl_seconds: Expiry applied to every write
        """
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.enabled = redis_client is not None

    @staticmethod
    def key(public_id: str) -> str:
        return f"{CACHE_KEY_PREFIX}{public_id}"

    def put(self, public_id: str, internal_id: str) -> CacheOutcome:
        """
        Store the mapping, replacing any previous value.

        Args:
            public_id: Public webhook UUID
            internal_id: Internal webhook id

        Returns:
            CacheOutcome describing whether the write landed
        """
        if not self.enabled:
            return CacheOutcome(ok=True)

        try:
            self._call("set", self.key(public_id), internal_id, ex=self.ttl_seconds)
        except CacheUnavailable as e:
            logger.warning(f"⚠️ Failed to cache webhook id for {public_id}: {e}")
            return CacheOutcome(ok=False, error=str(e))

        logger.debug(f"📝 Cached webhook id {internal_id} for {public_id}")
        return CacheOutcome(ok=True)

    def get(self, public_id: str) -> Optional[str]:
        """
        Look up the internal id for a public UUID.

        Returns:
            The internal id, or None on a miss or when Redis is unreachable
        """
        if not self.enabled:
            return None

        try:
            value = self._call("get", self.key(public_id))
        except CacheUnavailable as e:
            logger.warning(f"⚠️ Cache lookup failed for {public_id}, treating as miss: {e}")
            return None

        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def delete(self, public_id: str) -> CacheOutcome:
        """Evict the mapping for a public UUID."""
        if not self.enabled:
            return CacheOutcome(ok=True)

        try:
            self._call("delete", self.key(public_id))
        except CacheUnavailable as e:
            logger.warning(f"⚠️ Failed to evict cached webhook id for {public_id}: {e}")
            return CacheOutcome(ok=False, error=str(e))

        logger.debug(f"🧹 Evicted cached webhook id for {public_id}")
        return CacheOutcome(ok=True)

    def _call(self, command: str, *args, **kwargs):
        try:
            return getattr(self.redis, command)(*args, **kwargs)
        except redis.RedisError as e:
            raise CacheUnavailable(f"redis {command} failed: {e}") from e


@lru_cache
def get_redis_client() -> redis.Redis:
    """Shared Redis client; connections are opened lazily on first command."""
    settings = get_settings()
    return redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=2.0,
        socket_connect_timeout=2.0,
    )


def get_webhook_cache() -> WebhookIdCache:
    """Dependency for the webhook id cache."""
    settings = get_settings()
    return WebhookIdCache(get_redis_client(), ttl_seconds=settings.cache_ttl_seconds)
