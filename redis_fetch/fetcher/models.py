"""
Data models for cache fetchers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.errors import FetchError


DEFAULT_AUTO_REFRESH_AFTER = 3600


class ValueStatus(str, Enum):
    """Where the value returned by a fetch came from."""
    NO_VALUE_AVAILABLE = "NoValueAvailable"
    CACHED = "Cached"
    UP_TO_DATE = "UpToDate"


class FetcherOptions(BaseModel):
    """Options for ``create_redis_cache_fetcher``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Seconds until a cached value is fetched again; None never refreshes
    auto_refresh_after: Optional[float] = Field(default=DEFAULT_AUTO_REFRESH_AFTER, ge=0)
    # Lifetime of the cache entry in seconds; False keeps it until reset
    ttl: Union[Literal[False], int] = False

    @field_validator("ttl", mode="before")
    @classmethod
    def _strict_ttl(cls, value):
        if value is False or (type(value) is int and value > 0):
            return value
        raise ValueError("ttl must be False or a positive integer")


class CachedEnvelope(BaseModel):
    """The JSON object stored under a fetcher's key."""

    model_config = ConfigDict(populate_by_name=True)

    value: Any
    # Anything but a number is kept as written and never triggers a refresh
    refresh_after: Any = Field(default=None, alias="refreshAfter")

    def is_stale(self, now: int) -> bool:
        refresh_after = self.refresh_after
        if isinstance(refresh_after, bool) or not isinstance(refresh_after, (int, float)):
            return False
        return now > refresh_after

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class _Uninitialized:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNINITIALIZED"


UNINITIALIZED = _Uninitialized()


@dataclass(frozen=True)
class HasValue:
    """Latest value a fetcher obtained successfully."""
    value: Any


FetcherState = Union[HasValue, _Uninitialized]


@dataclass(frozen=True)
class FetchResult:
    """Outcome of ``RedisCacheFetcher.fetch``.

    ``value`` is only meaningful when ``has_value`` is true; otherwise
    ``error`` holds the ``FetchError`` that a plain call would raise.
    """
    value_status: ValueStatus
    value: Any = None
    error: Optional[FetchError] = None

    @property
    def has_value(self) -> bool:
        return self.value_status is not ValueStatus.NO_VALUE_AVAILABLE

    def unwrap(self) -> Any:
        """Return the value or raise the fetch error."""
        if not self.has_value:
            raise self.error
        return self.value
