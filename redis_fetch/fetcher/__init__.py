"""
Fetcher package for redis-fetch-cache.

A fetcher wraps an asynchronous producer, stores its result in a
``RedisCache`` and keeps serving the last good value when later calls
to the producer fail.
"""

from .fetcher import RedisCacheFetcher, create_redis_cache_fetcher
from .models import (
    DEFAULT_AUTO_REFRESH_AFTER,
    UNINITIALIZED,
    CachedEnvelope,
    FetcherOptions,
    FetchResult,
    HasValue,
    ValueStatus,
)

__all__ = [
    "DEFAULT_AUTO_REFRESH_AFTER",
    "UNINITIALIZED",
    "CachedEnvelope",
    "FetcherOptions",
    "FetchResult",
    "HasValue",
    "RedisCacheFetcher",
    "ValueStatus",
    "create_redis_cache_fetcher",
]
