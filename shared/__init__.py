"""
Shared utilities for redis-fetch-cache.

This package aggregates the ambient building blocks used by the library:

- config: Redis connection settings via pydantic-settings
- logging: Structured logging with structlog
- errors: Canonical error types and responses

Do not import from redis_fetch into shared/.
"""
