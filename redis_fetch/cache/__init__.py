"""
Cache package for redis-fetch-cache.

Provides a Redis-backed key/value cache that stores JSON payloads with
optional expiry and never raises on store or serialization failures.
"""

from .models import ABSENT, ErrorKind, Lookup, OpResult, Present
from .redis_cache import DEFAULT_TTL, TTL, RedisCache

__all__ = [
    "ABSENT",
    "DEFAULT_TTL",
    "ErrorKind",
    "Lookup",
    "OpResult",
    "Present",
    "RedisCache",
    "TTL",
]
