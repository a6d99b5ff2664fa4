"""
Shared fixtures for redis-fetch-cache tests.
"""

import asyncio
import time
from typing import Dict, Optional, Tuple

import pytest


class FakeClock:
    """Manually advanced clock returning seconds since epoch."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _FakeConnectionPool:
    def __init__(self):
        self.disconnected = False
        self.inuse_connections_dropped = False

    async def disconnect(self, inuse_connections: bool = True) -> None:
        self.disconnected = True
        self.inuse_connections_dropped = inuse_connections


class InMemoryRedis:
    """Subset of ``redis.asyncio.Redis`` used by RedisCache, kept in memory.

    Values are stored as strings like a client created with
    ``decode_responses=True``. Expiry is evaluated against ``clock``.
    """

    def __init__(self, clock=None, latency: float = 0.0):
        self.clock = clock or time.time
        self.latency = latency
        self.connection_pool = _FakeConnectionPool()
        self.closed = False
        self.commands = []
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    async def _roundtrip(self, command: str, *args) -> None:
        self.commands.append((command,) + args)
        if self.latency:
            await asyncio.sleep(self.latency)

    def _expired(self, key: str) -> bool:
        _, expires_at = self._data[key]
        return expires_at is not None and self.clock() >= expires_at

    async def get(self, key: str) -> Optional[str]:
        await self._roundtrip("GET", key)
        if key not in self._data:
            return None
        if self._expired(key):
            del self._data[key]
            return None
        return self._data[key][0]

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        await self._roundtrip("SET", key, value, ex)
        expires_at = self.clock() + ex if ex is not None else None
        self._data[key] = (value, expires_at)
        return True

    async def delete(self, *keys: str) -> int:
        await self._roundtrip("DEL", *keys)
        removed = 0
        for key in keys:
            if self._data.pop(key, None) is not None:
                removed += 1
        return removed

    async def flushdb(self, asynchronous: bool = False) -> bool:
        await self._roundtrip("FLUSHDB", asynchronous)
        self._data.clear()
        return True

    async def ping(self) -> bool:
        await self._roundtrip("PING")
        return True

    async def aclose(self) -> None:
        self.closed = True

    def raw(self, key: str) -> Optional[str]:
        """Stored string for ``key`` without expiry checks."""
        entry = self._data.get(key)
        return entry[0] if entry else None

    def put_raw(self, key: str, value: str) -> None:
        self._data[key] = (value, None)

    def ttl_of(self, key: str) -> Optional[float]:
        entry = self._data.get(key)
        if entry is None or entry[1] is None:
            return None
        return entry[1] - self.clock()


@pytest.fixture
def clock():
    """Clock shared by the store and the fetchers under test."""
    return FakeClock()


@pytest.fixture
def make_store(clock):
    """Factory for in-memory Redis clients bound to ``clock``."""
    def _make_store(latency: float = 0.0) -> InMemoryRedis:
        return InMemoryRedis(clock=clock, latency=latency)

    return _make_store


@pytest.fixture
def store(make_store):
    """In-memory Redis client."""
    return make_store()
