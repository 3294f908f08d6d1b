"""Refresh-token records held in Redis under opaque handles.

Each record is a Redis hash {user_id, jti, issued_at} keyed by
refresh:<handle> with a TTL equal to the refresh-token lifetime. The jti ties
the handle to the one refresh token issued alongside it. Redis owns expiry;
there is no sweeper.
"""

import secrets
import time
from uuid import UUID

import redis.asyncio as redis
import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError

from authcore.errors import InvalidOrExpiredToken, StoreUnavailable
from authcore.models.user import RefreshTokenRecord

logger = structlog.get_logger(__name__)

REFRESH_RECORD_TTL_SECONDS = 7 * 24 * 60 * 60
KEY_PREFIX = "refresh:"


def _key(handle: str) -> str:
    return f"{KEY_PREFIX}{handle}"


class RefreshTokenStore:
    """Creates, reads and revokes refresh-token records."""

    def __init__(self, client: redis.Redis, ttl_seconds: int = REFRESH_RECORD_TTL_SECONDS):
        self._redis = client
        self.ttl_seconds = ttl_seconds

    async def store(self, user_id: UUID, jti: str) -> str:
        """Write a new record binding user_id and jti, and return its handle.

        Raises:
            StoreUnavailable: On any Redis error
        """
        handle = secrets.token_urlsafe(32)
        key = _key(handle)
        record = {"user_id": str(user_id), "jti": jti, "issued_at": int(time.time())}

        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hset(key, mapping=record)
                pipe.expire(key, self.ttl_seconds)
                await pipe.execute()
        except RedisError as e:
            logger.error("refresh_record_store_failed", user_id=str(user_id), error=str(e))
            raise StoreUnavailable() from e

        logger.info(
            "refresh_record_stored",
            user_id=str(user_id),
            ttl_seconds=self.ttl_seconds,
        )
        return handle

    async def verify(self, handle: str) -> RefreshTokenRecord:
        """Return the record for handle.

        Raises:
            InvalidOrExpiredToken: The key is absent, expired, or unreadable
            StoreUnavailable: On any Redis error
        """
        if not handle:
            raise InvalidOrExpiredToken()

        try:
            data = await self._redis.hgetall(_key(handle))
        except RedisError as e:
            logger.error("refresh_record_read_failed", error=str(e))
            raise StoreUnavailable() from e

        if not data:
            logger.info("refresh_record_missing")
            raise InvalidOrExpiredToken()

        try:
            return RefreshTokenRecord.model_validate(data)
        except ValidationError as e:
            logger.warning("refresh_record_corrupt", fields=sorted(data))
            raise InvalidOrExpiredToken() from e

    async def revoke(self, handle: str) -> bool:
        """Delete the record for handle and report whether it existed.

        DEL is atomic, so when two callers race on one handle exactly one of
        them sees True. Deleting an absent key is not an error.
        """
        try:
            removed = await self._redis.delete(_key(handle))
        except RedisError as e:
            logger.error("refresh_record_revoke_failed", error=str(e))
            raise StoreUnavailable() from e

        logger.info("refresh_record_revoked", existed=bool(removed))
        return bool(removed)
