"""Redis connection and error helpers shared by the stores."""
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

import redis

from flowhub.config import get_settings


class StoreError(Exception):
    """A store operation failed or would break a store invariant."""


def get_redis_client() -> redis.Redis:
    """Redis client for the configured URL, decoding responses to str."""
    settings = get_settings()
    return redis.from_url(settings.redis_url, decode_responses=True)


@contextmanager
def redis_errors(operation: str) -> Iterator[None]:
    """Re-raise Redis failures as StoreError."""
    try:
        yield
    except redis.RedisError as e:
        raise StoreError(f"{operation} failed: {e}") from e


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
