"""
Redis caching layer with JSON payloads.
"""

import asyncio
import json
from typing import TYPE_CHECKING, Any, Callable, Literal, Mapping, Optional, Union

import redis.asyncio as redis

from shared.config import CacheConfig, load_cache_config
from shared.logging import get_logger
from .models import ABSENT, ErrorKind, Lookup, OpResult, Present

if TYPE_CHECKING:
    from ..fetcher import FetcherOptions, RedisCacheFetcher


TTL = Union[int, Literal[False]]
DEFAULT_TTL = 3600

ErrorHandler = Callable[[Exception], Any]


class RedisCache:
    """JSON key/value cache on top of a Redis connection.

    None of ``get``, ``set``, ``delete`` or ``flush`` raise: store and
    serialization failures are logged and mapped to ``False`` or to the
    caller's default value.

    Example::

        cache = RedisCache()            # REDIS_HOST / REDIS_PORT from env
        await cache.set("foo", {"bar": 1})
        await cache.get("foo")          # {"bar": 1}
        await cache.get("nope", "TM")   # "TM"
        await cache.set("foo", None)    # removes "foo"
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        *,
        client: Optional[redis.Redis] = None,
        on_error: Optional[ErrorHandler] = None
    ):
        self.logger = get_logger("redis_fetch.cache")

        if client is None:
            if config is None:
                config = load_cache_config()
            client = self._create_client(config)

        self.config = config
        self.client = client
        self.on_error: ErrorHandler = on_error or self._log_store_error

        self._closed = False
        self._inflight = 0
        self._drained = asyncio.Event()
        self._drained.set()

    @staticmethod
    def _create_client(config: CacheConfig) -> redis.Redis:
        return redis.Redis(
            host=config.host,
            port=config.port,
            db=config.db,
            password=config.password,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=config.socket_connect_timeout,
            socket_timeout=config.socket_timeout,
            retry_on_timeout=True,
            health_check_interval=30
        )

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "RedisCache":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def get(self, key: str, default: Any = ABSENT) -> Any:
        """Return the decoded value stored under ``key``, or ``default``.

        ``default`` is returned when the key does not exist, when the store
        cannot be reached and when the stored payload is not valid JSON.
        Without an explicit default the ``ABSENT`` marker is returned, so an
        entry holding JSON ``null`` can be told apart from a missing one.
        """
        found = await self.lookup(key)
        if isinstance(found, Present):
            return found.value
        return default

    async def lookup(self, key: str) -> Lookup:
        """Read ``key`` and return ``Present(value)`` or ``ABSENT``."""
        result = await self._execute(self.client.get, key)
        if not result.ok:
            self.logger.error(
                "Cache get error",
                key=key,
                error_kind=result.error_kind.value,
                error=str(result.error)
            )
            return ABSENT

        if result.value is None:
            self.logger.debug("Cache miss", key=key)
            return ABSENT

        decoded = self._decode(result.value)
        if not decoded.ok:
            self.logger.warning("Discarding undecodable cache entry", key=key, error=str(decoded.error))
            return ABSENT

        self.logger.debug("Cache hit", key=key)
        return Present(decoded.value)

    async def set(self, key: str, value: Any, ttl: TTL = DEFAULT_TTL) -> bool:
        """Store ``value`` as JSON under ``key``.

        A value of ``None`` deletes the key. ``ttl`` is the lifetime in
        seconds, counted from this write; ``False`` keeps the entry until it
        is deleted or flushed.
        """
        if value is None:
            return await self.delete(key)

        if not self._is_valid_ttl(ttl):
            self.logger.error("Invalid cache TTL", key=key, ttl=ttl)
            return False

        encoded = self._encode(value)
        if not encoded.ok:
            self.logger.error("Cache serialization error", key=key, error=str(encoded.error))
            return False

        if ttl is False:
            result = await self._execute(self.client.set, key, encoded.value)
        else:
            result = await self._execute(self.client.set, key, encoded.value, ex=ttl)

        if not result.ok:
            self.logger.error(
                "Cache set error",
                key=key,
                error_kind=result.error_kind.value,
                error=str(result.error)
            )
            return False

        self.logger.debug("Cached value", key=key, ttl=ttl)
        return True

    async def delete(self, key: str) -> bool:
        """Remove ``key``. Deleting a missing key succeeds."""
        result = await self._execute(self.client.delete, key)
        if not result.ok:
            self.logger.error(
                "Cache delete error",
                key=key,
                error_kind=result.error_kind.value,
                error=str(result.error)
            )
            return False

        self.logger.debug("Deleted cache entry", key=key)
        return True

    async def flush(self) -> bool:
        """Remove all keys of the current logical database."""
        result = await self._execute(self.client.flushdb, asynchronous=True)
        if not result.ok:
            self.logger.error(
                "Cache flush error",
                error_kind=result.error_kind.value,
                error=str(result.error)
            )
            return False

        self.logger.info("Cache flushed")
        return bool(result.value)

    async def health_check(self) -> bool:
        """Check Redis health."""
        result = await self._execute(self.client.ping)
        return result.ok and bool(result.value)

    async def close(self, graceful: bool = True) -> None:
        """Release the connection.

        A graceful close waits until in-flight commands have completed. An
        immediate close drops every pooled connection, including those in
        use, so pending commands fail and fall back to their default result.
        """
        if self._closed:
            return
        self._closed = True

        try:
            if graceful:
                await self._drained.wait()
            else:
                await self.client.connection_pool.disconnect(inuse_connections=True)
            await self.client.aclose()
        except Exception as e:
            self.logger.error("Error closing Redis connection", graceful=graceful, error=str(e))
            self._notify_error(e)
            return

        self.logger.info("Redis cache closed", graceful=graceful)

    def create_fetcher(
        self,
        key: str,
        producer: Callable[..., Any],
        options: Union["FetcherOptions", Mapping[str, Any], None] = None,
        *,
        clock: Optional[Callable[[], float]] = None
    ) -> "RedisCacheFetcher":
        """Create a fetcher that caches the results of ``producer`` under ``key``.

        See ``redis_fetch.fetcher.create_redis_cache_fetcher``.
        """
        from ..fetcher import create_redis_cache_fetcher

        return create_redis_cache_fetcher(self, key, producer, options, clock=clock)

    async def _execute(self, command, *args, **kwargs) -> OpResult:
        """Run one store command and capture its outcome."""
        if self._closed:
            return OpResult.failure(ErrorKind.CLOSED)

        self._inflight += 1
        self._drained.clear()
        try:
            return OpResult.success(await command(*args, **kwargs))
        except Exception as e:
            self._notify_error(e)
            return OpResult.failure(ErrorKind.TRANSPORT, e)
        finally:
            self._inflight -= 1
            if self._inflight == 0:
                self._drained.set()

    def _notify_error(self, error: Exception) -> None:
        try:
            self.on_error(error)
        except Exception as handler_error:
            self.logger.error("Redis error handler failed", error=str(handler_error))

    def _log_store_error(self, error: Exception) -> None:
        self.logger.warning("Redis error", error=str(error))

    @staticmethod
    def _is_valid_ttl(ttl: Any) -> bool:
        if ttl is False:
            return True
        return isinstance(ttl, int) and not isinstance(ttl, bool) and ttl > 0

    @staticmethod
    def _encode(value: Any) -> OpResult:
        try:
            return OpResult.success(json.dumps(value, allow_nan=False))
        except (TypeError, ValueError) as e:
            return OpResult.failure(ErrorKind.SERIALIZATION, e)

    @staticmethod
    def _decode(raw: Any) -> OpResult:
        try:
            return OpResult.success(json.loads(raw))
        except (TypeError, ValueError) as e:
            return OpResult.failure(ErrorKind.SERIALIZATION, e)
