"""
redis-fetch-cache: JSON caching and fetch-and-cache helpers on Redis.
"""

from shared.errors import CacheLayerException, ConfigurationError, FetchError
from .cache import ABSENT, RedisCache
from .fetcher import (
    FetcherOptions,
    FetchResult,
    RedisCacheFetcher,
    ValueStatus,
    create_redis_cache_fetcher,
)

__version__ = "1.0.0"

__all__ = [
    "ABSENT",
    "CacheLayerException",
    "ConfigurationError",
    "FetchError",
    "FetcherOptions",
    "FetchResult",
    "RedisCache",
    "RedisCacheFetcher",
    "ValueStatus",
    "create_redis_cache_fetcher",
]
