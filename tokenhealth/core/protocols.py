"""
Protocol definitions (interfaces) for collaborators of the scan engine.

Using typing.Protocol instead of ABC because:
1. Supports duck typing (no inheritance required)
2. Better for dependency injection
3. Easier to fake in tests

The engine owns none of these: key-value storage, the current-user lookup
and the scan history log are supplied from outside.
"""

from typing import Any, Protocol, runtime_checkable

from tokenhealth.core.models import ScanHistoryRecord
from tokenhealth.core.payloads import CoinSearchHit, MarketData
from tokenhealth.core.results import ProviderResult


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Key-value store backing the caches.

    Values are opaque JSON-compatible blobs. Implementations may raise
    CacheError; TTLCache turns read failures into misses and swallows
    write failures.
    """

    async def get(self, key: str) -> dict[str, Any] | None:
        ...

    async def put(self, key: str, value: dict[str, Any]) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    """Exposes the authenticated caller, if any."""

    def current_user_id(self) -> str | None:
        ...


@runtime_checkable
class HistorySink(Protocol):
    """Append-only log of scans made by authenticated users."""

    async def append(self, record: ScanHistoryRecord) -> None:
        ...

    async def recent(self, user_id: str, limit: int = 10) -> list[ScanHistoryRecord]:
        ...


@runtime_checkable
class MarketDataSource(Protocol):
    """
    Market-data operations the resolver depends on.

    Implemented by MarketDataClient; faked in tests.
    """

    async def search(self, query: str) -> ProviderResult[list[CoinSearchHit]]:
        ...

    async def fetch_coin(self, coin_id: str) -> ProviderResult[MarketData]:
        ...
