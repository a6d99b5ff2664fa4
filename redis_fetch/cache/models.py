"""
Result types for Redis cache operations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class _Absent:
    """Marker for "no entry", distinct from an entry holding null."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


@dataclass(frozen=True)
class Present:
    """A cache entry that exists and could be decoded."""
    value: Any


Lookup = Union[Present, _Absent]


class ErrorKind(str, Enum):
    """Why a cache operation failed."""
    TRANSPORT = "transport"
    SERIALIZATION = "serialization"
    CLOSED = "closed"


@dataclass(frozen=True)
class OpResult:
    """Outcome of a single store round-trip."""
    ok: bool
    value: Any = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: Any = None) -> "OpResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, error: Optional[Exception] = None) -> "OpResult":
        return cls(ok=False, error_kind=kind, error=error)
