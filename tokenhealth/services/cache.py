"""
Cache store.

Two logical caches over one KeyValueStore, with disjoint key spaces:

    MetricsCache  - computed HealthMetrics, 5 minutes
    IdentityCache - resolved identities, protocol lists and social
                    baselines, 24 hours

Cache failures never fail a scan: a read failure is a miss, a write
failure is logged and dropped.

SingleFlight makes concurrent misses for one key share one computation.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from tokenhealth.core.models import CacheEntry, HealthMetrics, ResolvedToken
from tokenhealth.core.protocols import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]

METRICS_TTL_SECONDS = 300
IDENTITY_TTL_SECONDS = 86_400


class InMemoryKeyValueStore:
    """
    Process-local KeyValueStore.

    Implements the KeyValueStore protocol. Suitable for a single bot
    process; swap for a shared store when running several.
    """

    def __init__(self):
        self._data: dict[str, dict[str, Any]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        return self._data.get(key)

    async def put(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class TTLCache:
    """
    Namespaced cache with per-entry expiry.

    Entries are stored as CacheEntry documents. An entry is served while
    now <= expires_at; after that it is treated as a miss and removed.
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str,
        ttl_seconds: float,
        clock: Clock = time.time,
    ):
        """
        Args:
            store: Backing key-value store
            namespace: Key prefix separating this cache from others
            ttl_seconds: Default entry lifetime
            clock: Returns current time in epoch seconds
        """
        self._store = store
        self._namespace = namespace
        self._ttl = ttl_seconds
        self._clock = clock

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> CacheEntry | None:
        """
        Read a fresh entry.

        Returns:
            CacheEntry, or None on miss, expiry, corrupt entry or store
            failure
        """
        full_key = self._key(key)

        try:
            raw = await self._store.get(full_key)
        except Exception as e:
            logger.warning(f"Cache read failed for {full_key}: {type(e).__name__}: {e}")
            return None

        if raw is None:
            return None

        try:
            entry = CacheEntry.model_validate(raw)
        except PydanticValidationError:
            logger.warning(f"Discarding corrupt cache entry {full_key}")
            await self.invalidate(key)
            return None

        if not entry.is_fresh(self._clock()):
            logger.debug(f"Cache entry expired: {full_key}")
            await self.invalidate(key)
            return None

        return entry

    async def put(self, key: str, payload: Any, ttl: float | None = None) -> None:
        """
        Write an entry. Store failures are logged and swallowed.

        Args:
            key: Key within this namespace
            payload: JSON-compatible value
            ttl: Lifetime override, seconds
        """
        now = self._clock()
        entry = CacheEntry(
            key=key,
            payload=payload,
            computed_at=now,
            expires_at=now + (ttl if ttl is not None else self._ttl),
        )

        try:
            await self._store.put(self._key(key), entry.model_dump(mode="json"))
        except Exception as e:
            logger.warning(f"Cache write failed for {self._key(key)}: {type(e).__name__}: {e}")

    async def invalidate(self, key: str) -> None:
        try:
            await self._store.delete(self._key(key))
        except Exception as e:
            logger.warning(f"Cache delete failed for {self._key(key)}: {type(e).__name__}: {e}")


class MetricsCache(TTLCache):
    """Computed health reports, keyed by normalized query."""

    def __init__(self, store: KeyValueStore, ttl_seconds: float = METRICS_TTL_SECONDS, clock: Clock = time.time):
        super().__init__(store, "metrics", ttl_seconds, clock)

    async def get_metrics(self, key: str) -> HealthMetrics | None:
        entry = await self.get(key)
        if entry is None:
            return None
        try:
            return HealthMetrics.model_validate(entry.payload)
        except PydanticValidationError:
            logger.warning(f"Discarding unreadable metrics for {key!r}")
            await self.invalidate(key)
            return None

    async def put_metrics(self, key: str, metrics: HealthMetrics) -> None:
        await self.put(key, metrics.model_dump(mode="json", by_alias=True))


class IdentityCache(TTLCache):
    """Resolved identities and other slow-changing lookups."""

    def __init__(self, store: KeyValueStore, ttl_seconds: float = IDENTITY_TTL_SECONDS, clock: Clock = time.time):
        super().__init__(store, "identity", ttl_seconds, clock)

    async def get_token(self, key: str) -> ResolvedToken | None:
        entry = await self.get(f"token:{key}")
        if entry is None:
            return None
        try:
            return ResolvedToken.model_validate(entry.payload)
        except PydanticValidationError:
            await self.invalidate(f"token:{key}")
            return None

    async def put_token(self, key: str, token: ResolvedToken) -> None:
        await self.put(f"token:{key}", token.model_dump(mode="json"))


class SingleFlight:
    """
    Per-key in-flight registry.

    The first caller for a key starts the computation; callers arriving
    while it runs await the same task. The key is released when the task
    finishes, so the next miss starts a new computation.
    """

    def __init__(self):
        self._inflight: dict[str, asyncio.Future] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run factory() once per key at a time.

        Args:
            key: Computation key
            factory: Starts the computation

        Returns:
            Result of the shared computation (exceptions propagate to
            every waiter)
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda t, k=key: self._release(k, t))
        else:
            logger.debug(f"Joining in-flight computation for {key!r}")

        # A cancelled waiter must not cancel the shared computation
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Future) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
