"""
Fetch-and-cache wrapper around asynchronous data producers.
"""

import functools
import inspect
import time
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from shared.errors import ConfigurationError, FetchError
from shared.logging import cache_key_var, get_logger
from ..cache import Present, RedisCache
from .models import (
    UNINITIALIZED,
    CachedEnvelope,
    FetcherOptions,
    FetcherState,
    FetchResult,
    HasValue,
    ValueStatus,
)


Producer = Callable[..., Any]
Clock = Callable[[], float]


class RedisCacheFetcher:
    """Wraps a producer so its result is cached in Redis.

    Awaiting the fetcher has the same signature as the producer. The first
    successful call makes a value available; later producer failures are
    hidden and the last good value is returned instead. A value that is
    older than ``auto_refresh_after`` seconds is fetched again on the next
    call.

    Concurrent calls are not coalesced: two calls that both see a miss both
    run the producer and the last write wins.
    """

    def __init__(
        self,
        cache: RedisCache,
        key: str,
        producer: Producer,
        options: Optional[FetcherOptions] = None,
        *,
        clock: Optional[Clock] = None
    ):
        self.cache = cache
        self.producer = producer
        self._key = key
        self._options = options if options is not None else FetcherOptions()
        self._clock = clock or time.time
        self._state: FetcherState = UNINITIALIZED
        self.logger = get_logger("redis_fetch.fetcher")

        functools.update_wrapper(self, producer, updated=())

    @property
    def key(self) -> str:
        return self._key

    @property
    def options(self) -> FetcherOptions:
        return self._options

    @property
    def has_value(self) -> bool:
        return isinstance(self._state, HasValue)

    async def __call__(self, *args, **kwargs) -> Any:
        """Return the cached or freshly produced value.

        Raises ``FetchError`` (caused by the producer's exception) only if no
        value has been obtained since creation or the last reset.
        """
        result = await self.fetch(*args, **kwargs)
        return result.unwrap()

    async def fetch(self, *args, **kwargs) -> FetchResult:
        """Like calling the fetcher, but report failures in the result."""
        token = cache_key_var.set(self._key)
        try:
            return await self._fetch(args, kwargs)
        finally:
            cache_key_var.reset(token)

    async def reset(self) -> bool:
        """Remove the cached entry; the next call starts cold."""
        removed = await self.cache.set(self._key, None)
        if removed:
            self._state = UNINITIALIZED
            self.logger.info("Fetcher reset", cache_key=self._key)
        else:
            self.logger.warning("Fetcher reset failed, keeping last value", cache_key=self._key)
        return removed

    async def _fetch(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> FetchResult:
        now = self._now_ms()
        status = ValueStatus.CACHED

        try:
            envelope = await self._read_envelope()
            if envelope is None:
                await self._refresh(now, args, kwargs)
                status = ValueStatus.UP_TO_DATE
            else:
                self._state = HasValue(envelope.value)

                if envelope.is_stale(now):
                    self.logger.debug("Cached value is stale", refresh_after=envelope.refresh_after)
                    await self._refresh(now, args, kwargs)
                    status = ValueStatus.UP_TO_DATE
        except Exception as e:
            if self._state is UNINITIALIZED:
                self.logger.error("Fetch failed and no value is available", error=str(e))
                error = FetchError(self._key, str(e) or type(e).__name__)
                error.__cause__ = e
                return FetchResult(ValueStatus.NO_VALUE_AVAILABLE, error=error)

            self.logger.warning("Refresh failed, serving last good value", error=str(e))

        return FetchResult(status, value=self._state.value)

    async def _read_envelope(self) -> Optional[CachedEnvelope]:
        found = await self.cache.lookup(self._key)
        if not isinstance(found, Present):
            return None

        try:
            return CachedEnvelope.model_validate(found.value)
        except ValidationError:
            self.logger.warning("Ignoring malformed cache envelope")
            return None

    async def _refresh(self, now: int, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        value = self.producer(*args, **kwargs)
        if inspect.isawaitable(value):
            value = await value

        refresh_after = None
        if self._options.auto_refresh_after is not None:
            refresh_after = now + self._options.auto_refresh_after * 1000

        envelope = CachedEnvelope(value=value, refresh_after=refresh_after)
        if not await self.cache.set(self._key, envelope.to_payload(), self._options.ttl):
            self.logger.warning("Could not store fetched value")

        self._state = HasValue(value)
        self.logger.debug("Fetched fresh value", refresh_after=refresh_after)
        return value

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)


def create_redis_cache_fetcher(
    cache: RedisCache,
    key: str,
    producer: Producer,
    options: Union[FetcherOptions, Mapping[str, Any], None] = None,
    *,
    clock: Optional[Clock] = None
) -> RedisCacheFetcher:
    """Wrap ``producer`` so that its result is cached in ``cache`` under ``key``.

    Example::

        cache = RedisCache()

        async def load_random_users(seed: str):
            async with httpx.AsyncClient() as client:
                response = await client.get("https://randomuser.me/api/", params={"seed": seed})
                return response.json()

        fetch_users = create_redis_cache_fetcher(cache, "randomUsers", load_random_users)

        # the first call must succeed, otherwise FetchError is raised
        users = await fetch_users("foobar1")

        # served from cache until auto_refresh_after has passed
        users = await fetch_users("foobar2")

        # drop the cached value and fetch again
        await fetch_users.reset()
        users = await fetch_users("foobar3")
    """
    if not isinstance(key, str) or not key:
        raise ConfigurationError("Fetcher key must be a non-empty string", {"key": key})
    if not callable(producer):
        raise ConfigurationError("Fetcher producer must be callable", {"key": key})

    if options is not None and not isinstance(options, FetcherOptions):
        try:
            options = FetcherOptions.model_validate(dict(options))
        except (TypeError, ValueError) as e:
            raise ConfigurationError("Invalid fetcher options", {"key": key, "error": str(e)}) from e

    return RedisCacheFetcher(cache, key, producer, options, clock=clock)
