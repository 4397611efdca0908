"""
Hybrid in-memory + Redis rate limiting utilities
Counts live in process memory; Redis is only used to share them between workers when configured
"""

import logging
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import Request

from .exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)

# Redis connection (None = memory-only mode)
redis_client: Optional[redis.Redis] = None
redis_client_url: Optional[str] = None
redis_unavailable_until = 0.0
REDIS_RETRY_INTERVAL = 60  # Seconds to wait before reconnecting after a failure

# In-memory cache for rate limiting
# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

# Configuration
MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # Clean up expired entries every 60 seconds
last_cleanup_time = 0


def get_redis_client(redis_url: Optional[str]) -> Optional[redis.Redis]:
    """
    Get or create the Redis client for ``redis_url``.
    Returns None when no URL is configured or Redis cannot be reached,
    in which case limits are enforced per process only.
    """
    global redis_client, redis_client_url, redis_unavailable_until

    if not redis_url:
        return None

    if redis_client is not None and redis_client_url == redis_url:
        return redis_client

    if time.time() < redis_unavailable_until:
        return None

    try:
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
        client.ping()
    except Exception as e:
        logger.warning(f"⚠️ Redis unavailable, rate limiting will use process memory only: {e}")
        redis_unavailable_until = time.time() + REDIS_RETRY_INTERVAL
        return None

    logger.info("Redis connected successfully for rate limiting")
    redis_client = client
    redis_client_url = redis_url
    return redis_client


def reset_rate_limits() -> None:
    """Forget every in-memory counter"""
    global last_cleanup_time
    with cache_lock:
        memory_cache.clear()
    last_cleanup_time = 0


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [
            k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)
        ]
        for k in expired_keys:
            del memory_cache[k]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def _new_entry(client: Optional[redis.Redis], key: str, current_time: int, window_seconds: int) -> dict:
    if client is not None:
        try:
            redis_count = client.get(key)
            redis_ttl = client.ttl(key)
            if redis_count and redis_ttl > 0:
                return {
                    "count": int(redis_count),
                    "reset_time": current_time + redis_ttl,
                    "last_redis_sync": current_time,
                }
        except Exception as e:
            logger.warning(f"⚠️ Failed to load from Redis, using memory only: {e}")

    return {
        "count": 0,
        "reset_time": current_time + window_seconds,
        "last_redis_sync": current_time,
    }


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis] = None
) -> tuple[bool, int, int]:
    """Check if rate limit is exceeded using a fixed window per key

    Args:
        key: Cache key for this rate limit
        limit: Maximum number of requests allowed
        window_seconds: Time window in seconds
        client: Optional Redis client to share counts with other workers

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())

    cleanup_expired_cache()

    with cache_lock:
        if key not in memory_cache:
            memory_cache[key] = _new_entry(client, key, current_time, window_seconds)

        cache_entry = memory_cache[key]

        # Check if window has expired
        if current_time >= cache_entry["reset_time"]:
            cache_entry["count"] = 0
            cache_entry["reset_time"] = current_time + window_seconds
            cache_entry["last_redis_sync"] = 0

        is_allowed = cache_entry["count"] < limit
        if is_allowed:
            cache_entry["count"] += 1

        # Sync to Redis periodically (not on every request)
        time_since_sync = current_time - cache_entry.get("last_redis_sync", 0)
        if client is not None and time_since_sync >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                ttl = max(1, cache_entry["reset_time"] - current_time)
                client.set(key, cache_entry["count"], ex=ttl)
                cache_entry["last_redis_sync"] = current_time
                logger.debug(f"📡 Synced {key} to Redis: {cache_entry['count']}/{limit}")
            except Exception as e:
                logger.warning(f"⚠️ Failed to sync to Redis: {e}")

        ttl = cache_entry["reset_time"] - current_time
        return is_allowed, cache_entry["count"], max(0, ttl)


def client_ip(request: Request, trust_proxy: bool = False) -> str:
    """Socket peer, or the first X-Forwarded-For hop when a trusted proxy sits in front"""
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    redis_url: Optional[str] = None,
    trust_proxy: bool = False,
):
    """
    FastAPI dependency for per-IP rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Prefix for the cache key
        redis_url: Optional Redis URL to share counts between workers
        trust_proxy: Key on X-Forwarded-For instead of the socket peer
    """
    key = f"{key_prefix}:{client_ip(request, trust_proxy)}"
    is_allowed, current_count, ttl = check_rate_limit(
        key, limit, window_seconds, get_redis_client(redis_url)
    )

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise RateLimitExceeded(retry_after=ttl)


def create_rate_limiter(
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    redis_url: Optional[str] = None,
    trust_proxy: bool = False,
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        rate_limit_submissions = create_rate_limiter(limit=10, window_seconds=900, key_prefix="submit_wizard")

        app.include_router(router, dependencies=[Depends(rate_limit_submissions)])
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(
            request, limit, window_seconds, key_prefix, redis_url, trust_proxy
        )

    return rate_limiter
