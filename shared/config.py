"""
Shared configuration management for redis-fetch-cache.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6379


class CacheConfig(BaseSettings):
    """Connection settings for the Redis backed cache."""

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Connection
    host: str = Field(default=DEFAULT_HOST)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    password: Optional[str] = Field(default=None)

    # Timeouts are enforced by the redis client, not by the cache
    socket_timeout: float = Field(default=5.0, gt=0)
    socket_connect_timeout: float = Field(default=5.0, gt=0)

    @field_validator("host", mode="before")
    @classmethod
    def _default_blank_host(cls, value):
        if value is None or not str(value).strip():
            return DEFAULT_HOST
        return str(value).strip()

    @field_validator("port", mode="before")
    @classmethod
    def _default_blank_port(cls, value):
        if isinstance(value, str) and not value.strip():
            return DEFAULT_PORT
        return value


def load_cache_config() -> CacheConfig:
    """Read the cache configuration from the environment (REDIS_* variables)."""
    return CacheConfig()
