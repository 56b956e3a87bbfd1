"""Shared Redis client factory for the revoked-token blocklist."""

import redis
from django.conf import settings

_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton Redis client built from REDIS_URL.

    A short socket timeout keeps an unreachable Redis from stalling every
    authenticated request; callers treat failures as fail-closed.
    """

    global _client
    if _client is None:
        _client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    return _client


__all__ = ["get_redis_client"]
