"""
Pytest configuration and fixtures.

Provides reusable test fixtures for:
- Fake clock and key-value stores
- Sample provider payloads (Pendle on Ethereum)
- Fake provider clients for the orchestrator and the resolver
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from tokenhealth.core.exceptions import CacheError
from tokenhealth.core.models import ResolutionSource, ResolvedToken
from tokenhealth.core.payloads import (
    CodeActivity,
    CoinLinks,
    CoinSearchHit,
    ContractInfo,
    LiquidityLock,
    MarketData,
    PoolDetail,
    PoolSummary,
    SecurityReport,
)
from tokenhealth.core.results import Ok, logical_error
from tokenhealth.services.aggregation import ProviderClients
from tokenhealth.services.cache import InMemoryKeyValueStore
from tokenhealth.services.providers.base import ProviderConfig

PENDLE_ADDRESS = "0x808507121b80c02388fad14726482e061b8da827"

# 2026-01-01T00:00:00Z
FIXED_NOW = 1_767_225_600.0


# =============================================================================
# Clock and Stores
# =============================================================================


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: float = FIXED_NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingStore:
    """KeyValueStore whose every operation fails."""

    async def get(self, key: str) -> dict[str, Any] | None:
        raise CacheError(technical_message="store down")

    async def put(self, key: str, value: dict[str, Any]) -> None:
        raise CacheError(technical_message="store down")

    async def delete(self, key: str) -> None:
        raise CacheError(technical_message="store down")


class FailingHistorySink:
    async def append(self, record) -> None:
        raise RuntimeError("history down")

    async def recent(self, user_id: str, limit: int = 10) -> list:
        return []


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Client config for a fake host, with instant retries."""
    return ProviderConfig(
        base_url="https://api.test",
        api_key="test-key",
        timeout=1.0,
        max_retries=1,
        retry_backoff=0.0,
    )


# =============================================================================
# Sample Payloads
# =============================================================================


@pytest.fixture
def pendle_address() -> str:
    return PENDLE_ADDRESS


@pytest.fixture
def pendle_hits() -> list[CoinSearchHit]:
    """Search hits for 'pendle', the wanted coin not listed first."""
    return [
        CoinSearchHit(id="pendle-wrapped", name="Wrapped Pendle", symbol="WPENDLE", market_cap_rank=2100),
        CoinSearchHit(id="pendle", name="Pendle", symbol="PENDLE", market_cap_rank=60),
    ]


@pytest.fixture
def pendle_market() -> MarketData:
    return MarketData(
        id="pendle",
        symbol="pendle",
        name="Pendle",
        market_cap_rank=60,
        current_price=5.12,
        price_change_24h=2.4,
        market_cap=820_000_000,
        market_cap_change_24h=1.9,
        total_volume=95_000_000,
        twitter_followers=150_000,
        reddit_subscribers=2_500,
        telegram_users=12_000,
        commit_count_4_weeks=35,
        stars=400,
        forks=120,
        pull_request_contributors=18,
        platforms={"ethereum": PENDLE_ADDRESS, "arbitrum-one": "0x0c880f6761f1af8d9aa9c466984b80dab9a8c9e8"},
        links=CoinLinks(
            homepage=["https://www.pendle.finance"],
            repos_github=["https://github.com/pendle-finance/pendle-core-v2-public"],
            twitter_screen_name="pendle_fi",
        ),
    )


@pytest.fixture
def pendle_token() -> ResolvedToken:
    return ResolvedToken(
        id="pendle",
        symbol="PENDLE",
        name="Pendle",
        contract_address=PENDLE_ADDRESS,
        network="eth",
        source=ResolutionSource.SEARCH,
        coin_id="pendle",
    )


@pytest.fixture
def pool_detail() -> PoolDetail:
    return PoolDetail(
        address="0x57fc37b9f4d2f1e5b1d5e5c6e2c8e0d2b8e4a1f3",
        network="eth",
        name="PENDLE / WETH",
        reserve_in_usd=2_500_000,
        volume_24h=1_200_000,
        tx_count_24h=1_450,
        created_at=datetime(2023, 6, 1, tzinfo=timezone.utc),
        liquidity_lock=LiquidityLock(is_locked=True, duration_seconds=200 * 86_400),
    )


@pytest.fixture
def security_report() -> SecurityReport:
    return SecurityReport(
        ownership_renounced=False,
        can_mint=False,
        has_blacklist=False,
        transfer_pausable=False,
        is_honeypot=False,
        is_open_source=True,
        buy_tax=0.0,
        sell_tax=0.0,
        holder_count=41_000,
    )


@pytest.fixture
def contract_info() -> ContractInfo:
    return ContractInfo(
        address=PENDLE_ADDRESS,
        verified=True,
        contract_name="PENDLE",
        top_holders_bp=4250,
        creator_address="0x1fcc1b3e4a1c5a2a2b2b3e6b1e0d8f0a6d9e2c41",
    )


@pytest.fixture
def code_activity() -> CodeActivity:
    return CodeActivity(
        repo="pendle-finance/pendle-core-v2-public",
        stars=420,
        forks=130,
        commit_count=25,
        contributor_count=14,
        last_commit_at=datetime.now(timezone.utc) - timedelta(days=2),
        is_open_source=True,
    )


# =============================================================================
# Fake Provider Clients
# =============================================================================


class FakeClient:
    """
    Provider client double returning a preset result.

    Records every call; can delay, raise, or cover only some networks.
    """

    def __init__(
        self,
        name: str,
        result=None,
        delay: float = 0.0,
        error: Exception | None = None,
        networks: set[str] | None = None,
    ):
        self.name = name
        self.result = result
        self.delay = delay
        self.error = error
        self.networks = networks
        self.calls: list[tuple] = []

    def supports(self, network: str) -> bool:
        return self.networks is None or network in self.networks

    async def fetch(self, *args):
        self.calls.append(args)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class FakePoolsClient(FakeClient):
    """Two-stage pools double: list, then detail of the chosen pool."""

    def __init__(self, pools=None, detail=None, **kwargs):
        super().__init__("onchain_pools", **kwargs)
        self.pools = pools
        self.detail = detail
        self.detail_calls: list[tuple] = []

    async def fetch_pools(self, network: str, address: str):
        self.calls.append((network, address))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.pools

    async def fetch_pool(self, network: str, pool_address: str):
        self.detail_calls.append((network, pool_address))
        return self.detail


class FakeMarketData(FakeClient):
    """
    Market-data double for both the resolver and the orchestrator.

    search() returns `search_result`; fetch_coin() looks coins up by id;
    fetch() returns `result` when set, else the coin of the token.
    """

    def __init__(self, search_result=None, coins: dict[str, MarketData] | None = None, **kwargs):
        super().__init__("market_data", **kwargs)
        self.search_result = search_result if search_result is not None else Ok([])
        self.coins = coins or {}
        self.search_calls: list[str] = []

    async def search(self, query: str):
        self.search_calls.append(query)
        if self.error:
            raise self.error
        return self.search_result

    async def fetch_coin(self, coin_id: str):
        coin = self.coins.get(coin_id)
        if coin is None:
            return logical_error(self.name, "not found (HTTP 404)")
        return Ok(coin)

    async def fetch(self, token):
        self.calls.append((token,))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        if self.result is not None:
            return self.result
        return await self.fetch_coin(token.coin_id or token.id)


def make_clients(**overrides) -> ProviderClients:
    """ProviderClients of fakes; every provider fails logically unless overridden."""
    defaults = {
        "market": FakeMarketData(),
        "pools": FakePoolsClient(pools=logical_error("onchain_pools", "not found (HTTP 404)")),
        "explorer": FakeClient("contract_explorer", logical_error("contract_explorer", "NOTOK")),
        "security": FakeClient("security_analyzer", logical_error("security_analyzer", "not indexed")),
        "tvl": FakeClient("tvl", logical_error("tvl", "no protocol matches")),
        "social": FakeClient("social_profile", logical_error("social_profile", "no bearer token configured")),
        "code": FakeClient("code_activity", logical_error("code_activity", "not found (HTTP 404)")),
    }
    defaults.update(overrides)
    return ProviderClients(**defaults)


@pytest.fixture
def pool_summaries() -> list[PoolSummary]:
    return [
        PoolSummary(id="eth_0xsmall", address="0xsmall", reserve_in_usd=50_000),
        PoolSummary(id="eth_0xdeep", address="0xdeep", reserve_in_usd=2_500_000),
        PoolSummary(id="eth_0xunknown", address="0xunknown"),
    ]
