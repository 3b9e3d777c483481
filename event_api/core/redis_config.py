from typing import Optional

import redis

from event_api.core.config import get_settings


def get_redis_url() -> str:
    return get_settings().redis_url


def get_redis_client() -> Optional[redis.Redis]:
    """Get Redis client for record locking, or None when locking is disabled."""
    url = get_redis_url()
    if not url:
        return None
    return redis.from_url(url, decode_responses=True)
