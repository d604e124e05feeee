"""
Tests for provider clients.

Tests cover:
- Retry policy (transport failures retried, logical failures not)
- Payload parsing into typed shapes
- Provider error payloads carried in 200 responses
- Optional sub-lookups degrading on their own
"""

import re

import aiohttp
import pytest
from aioresponses import aioresponses

from conftest import FakeClock
from tokenhealth.core.models import ResolutionSource, ResolvedToken
from tokenhealth.core.payloads import (
    ActivityStatus,
    CoinLinks,
    ContractRiskLevel,
    HolderBalance,
    PoolSummary,
    Trend,
)
from tokenhealth.core.results import Err, FailureKind, Ok
from tokenhealth.services.cache import IdentityCache, InMemoryKeyValueStore
from tokenhealth.services.providers import (
    CodeActivityClient,
    ContractExplorerClient,
    MarketDataClient,
    OnChainPoolsClient,
    ProviderConfig,
    SecurityAnalyzerClient,
    SocialProfileClient,
    TvlClient,
)
from tokenhealth.services.providers.code_activity import activity_status, extract_repo, parse_repo
from tokenhealth.services.providers.contract_explorer import (
    analyze_contract_source,
    top_holders_basis_points,
)
from tokenhealth.services.providers.onchain_pools import primary_pool
from tokenhealth.services.providers.social import baseline_key, calculate_follower_growth, extract_social_handle
from tokenhealth.services.providers.tvl import format_chain_distribution, tvl_change


def url(pattern: str) -> re.Pattern:
    """Match a fake-host URL, query string included."""
    return re.compile(r"^https://api\.test/" + pattern)


def explorer_url(action: str) -> re.Pattern:
    """Match an Etherscan call by its action (all calls share one path)."""
    return re.compile(rf"^https://api\.test/?\?.*action={action}(&|$)")


# =============================================================================
# Retry policy
# =============================================================================


class TestRetryPolicy:
    """Tests for the bounded retry loop shared by all clients."""

    @pytest.fixture
    def client(self, provider_config: ProviderConfig) -> MarketDataClient:
        return MarketDataClient(provider_config)

    @pytest.mark.asyncio
    async def test_retries_server_error_then_succeeds(self, client: MarketDataClient) -> None:
        """A 5xx is retried and the second attempt's payload is returned."""
        with aioresponses() as m:
            m.get(url(r"search\?.*"), status=503)
            m.get(url(r"search\?.*"), payload={"coins": [{"id": "pendle", "symbol": "PENDLE", "name": "Pendle"}]})

            result = await client.search("pendle")

        assert isinstance(result, Ok)
        assert result.payload[0].id == "pendle"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, client: MarketDataClient) -> None:
        """Persistent 5xx becomes a transport failure."""
        with aioresponses() as m:
            m.get(url(r"search\?.*"), status=500)
            m.get(url(r"search\?.*"), status=502)

            result = await client.search("pendle")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.TRANSPORT
        assert result.provider == "market_data"

    @pytest.mark.asyncio
    async def test_timeout_is_transport_failure(self, client: MarketDataClient) -> None:
        with aioresponses() as m:
            m.get(url(r"search\?.*"), exception=TimeoutError())
            m.get(url(r"search\?.*"), exception=TimeoutError())

            result = await client.search("pendle")

        assert isinstance(result, Err)
        assert result.is_transport
        assert "timeout" in result.detail

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_failure(self, client: MarketDataClient) -> None:
        with aioresponses() as m:
            m.get(url(r"search\?.*"), exception=aiohttp.ClientConnectionError("refused"))
            m.get(url(r"search\?.*"), exception=aiohttp.ClientConnectionError("refused"))

            result = await client.search("pendle")

        assert isinstance(result, Err)
        assert result.is_transport

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self, client: MarketDataClient) -> None:
        """A 404 is returned immediately; the second response is never used."""
        with aioresponses() as m:
            m.get(url(r"coins/nope\?.*"), status=404)
            m.get(url(r"coins/nope\?.*"), payload={"id": "nope"})

            result = await client.fetch_coin("nope")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL
        assert "404" in result.detail

    @pytest.mark.asyncio
    async def test_rate_limit_is_logical(self, client: MarketDataClient) -> None:
        with aioresponses() as m:
            m.get(url(r"search\?.*"), status=429)

            result = await client.search("pendle")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL
        assert "rate limited" in result.detail

    @pytest.mark.asyncio
    async def test_malformed_json_is_logical(self, client: MarketDataClient) -> None:
        with aioresponses() as m:
            m.get(url(r"search\?.*"), body="<html>oops</html>")

            result = await client.search("pendle")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL

    @pytest.mark.asyncio
    async def test_no_retries_when_disabled(self) -> None:
        client = MarketDataClient(ProviderConfig(base_url="https://api.test", max_retries=0, retry_backoff=0.0))

        with aioresponses() as m:
            m.get(url(r"search\?.*"), status=500)
            m.get(url(r"search\?.*"), payload={"coins": []})

            result = await client.search("pendle")

        assert isinstance(result, Err)
        assert result.is_transport

    @pytest.mark.asyncio
    async def test_backoff_grows_between_attempts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Each retry waits backoff_multiplier times longer than the last."""
        client = MarketDataClient(ProviderConfig(base_url="https://api.test", max_retries=2, retry_backoff=1.0))
        delays: list[float] = []

        async def fake_sleep(delay: float) -> None:
            delays.append(delay)

        monkeypatch.setattr("tokenhealth.services.providers.base.asyncio.sleep", fake_sleep)

        with aioresponses() as m:
            m.get(url(r"search\?.*"), status=500)
            m.get(url(r"search\?.*"), status=502)
            m.get(url(r"search\?.*"), status=503)
            m.get(url(r"search\?.*"), payload={"coins": []})

            result = await client.search("pendle")
            request_count = sum(len(calls) for calls in m.requests.values())

        assert isinstance(result, Err)
        assert result.is_transport
        assert "503" in result.detail
        # The HTTP stack may yield with sleep(0)
        assert [d for d in delays if d] == [1.0, 1.5]
        assert request_count == 3


# =============================================================================
# MarketData
# =============================================================================


class TestMarketDataClient:
    """Tests for the CoinGecko client."""

    @pytest.fixture
    def client(self, provider_config: ProviderConfig) -> MarketDataClient:
        return MarketDataClient(provider_config)

    @pytest.fixture
    def coin_document(self, pendle_address: str) -> dict:
        return {
            "id": "pendle",
            "symbol": "pendle",
            "name": "Pendle",
            "market_cap_rank": 60,
            "platforms": {"ethereum": pendle_address, "": ""},
            "links": {
                "homepage": ["https://www.pendle.finance", ""],
                "repos_url": {"github": ["https://github.com/pendle-finance/pendle-core-v2-public"]},
                "twitter_screen_name": "pendle_fi",
            },
            "market_data": {
                "current_price": {"usd": 5.12},
                "market_cap": {"usd": 820000000},
                "total_volume": {"usd": 95000000},
                "price_change_percentage_24h": 2.4,
            },
            "community_data": {"twitter_followers": 150000, "reddit_subscribers": None},
            "developer_data": {"commit_count_4_weeks": 35, "forks": 120},
        }

    @pytest.mark.asyncio
    async def test_fetch_coin_parses_document(self, client: MarketDataClient, coin_document: dict, pendle_address: str) -> None:
        with aioresponses() as m:
            m.get(url(r"coins/pendle\?.*"), payload=coin_document)

            result = await client.fetch_coin("pendle")

        assert isinstance(result, Ok)
        market = result.payload
        assert market.market_cap == 820_000_000
        assert market.current_price == 5.12
        assert market.twitter_followers == 150_000
        assert market.reddit_subscribers is None
        assert market.platforms == {"ethereum": pendle_address}
        assert market.links.homepage == ["https://www.pendle.finance"]
        assert market.links.repos_github == ["https://github.com/pendle-finance/pendle-core-v2-public"]

    @pytest.mark.asyncio
    async def test_error_payload_is_logical(self, client: MarketDataClient) -> None:
        """CoinGecko rate-limit documents arrive with HTTP 200 on some plans."""
        with aioresponses() as m:
            m.get(url(r"search\?.*"), payload={"status": {"error_code": 429, "error_message": "Throttled"}})

            result = await client.search("pendle")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL

    @pytest.mark.asyncio
    async def test_invalid_document_is_logical(self, client: MarketDataClient) -> None:
        """A coin document without an id does not fit MarketData."""
        with aioresponses() as m:
            m.get(url(r"coins/pendle\?.*"), payload={"name": "Pendle"})

            result = await client.fetch_coin("pendle")

        assert isinstance(result, Err)
        assert "invalid payload" in result.detail

    @pytest.mark.asyncio
    async def test_fetch_by_contract_uses_platform(self, client: MarketDataClient, coin_document: dict) -> None:
        token = ResolvedToken(
            id="0xabc",
            contract_address="0x0e09fabb73bd3ade0a17ecc321fd13a19e81ce82",
            network="bsc",
            source=ResolutionSource.ADDRESS,
        )
        with aioresponses() as m:
            m.get(
                url(r"coins/binance-smart-chain/contract/0x0e09fabb73bd3ade0a17ecc321fd13a19e81ce82$"),
                payload=coin_document,
            )

            result = await client.fetch(token)

        assert isinstance(result, Ok)
        assert result.payload.id == "pendle"

    @pytest.mark.asyncio
    async def test_resolved_coin_is_fetched_once(self, client: MarketDataClient, coin_document: dict) -> None:
        """Resolution's coin lookup serves the scan's market-data fetch."""
        token = ResolvedToken(id="pendle", coin_id="pendle", source=ResolutionSource.SEARCH)

        with aioresponses() as m:
            m.get(url(r"coins/pendle\?.*"), payload=coin_document)

            looked_up = await client.fetch_coin("pendle")
            fetched = await client.fetch(token)
            request_count = sum(len(calls) for calls in m.requests.values())

        assert isinstance(fetched, Ok)
        assert fetched.payload == looked_up.payload
        assert request_count == 1

    @pytest.mark.asyncio
    async def test_coin_is_refetched_after_reuse_window(self, provider_config: ProviderConfig, coin_document: dict) -> None:
        clock = FakeClock()
        client = MarketDataClient(provider_config, reuse_seconds=30.0, clock=clock)

        with aioresponses() as m:
            m.get(url(r"coins/pendle\?.*"), payload=coin_document, repeat=True)

            await client.fetch_coin("pendle")
            clock.advance(31)
            await client.fetch_coin("pendle")
            request_count = sum(len(calls) for calls in m.requests.values())

        assert request_count == 2

    @pytest.mark.asyncio
    async def test_failed_coin_lookup_is_not_reused(self, client: MarketDataClient, coin_document: dict) -> None:
        with aioresponses() as m:
            m.get(url(r"coins/pendle\?.*"), status=404)
            m.get(url(r"coins/pendle\?.*"), payload=coin_document)

            first = await client.fetch_coin("pendle")
            second = await client.fetch_coin("pendle")

        assert isinstance(first, Err)
        assert isinstance(second, Ok)

    def test_sends_demo_key_header(self, client: MarketDataClient) -> None:
        assert client._headers()["x-cg-demo-api-key"] == "test-key"


# =============================================================================
# OnChainPools
# =============================================================================


class TestOnChainPoolsClient:
    """Tests for the GeckoTerminal client."""

    @pytest.fixture
    def client(self, provider_config: ProviderConfig) -> OnChainPoolsClient:
        return OnChainPoolsClient(provider_config)

    @pytest.mark.asyncio
    async def test_fetch_pools(self, client: OnChainPoolsClient, pendle_address: str) -> None:
        payload = {
            "data": [
                {"id": "eth_0xaaa", "attributes": {"address": "0xaaa", "name": "PENDLE / WETH", "reserve_in_usd": "2500000.5"}},
                {"id": "eth_0xbbb", "attributes": {"name": "PENDLE / USDC", "reserve_in_usd": None}},
            ]
        }
        with aioresponses() as m:
            m.get(url(rf"networks/eth/tokens/{pendle_address}/pools$"), payload=payload)

            result = await client.fetch_pools("eth", pendle_address)

        assert isinstance(result, Ok)
        assert [p.address for p in result.payload] == ["0xaaa", "0xbbb"]
        assert result.payload[0].reserve_in_usd == 2_500_000.5
        assert result.payload[1].reserve_in_usd is None

    @pytest.mark.asyncio
    async def test_fetch_pool_detail(self, client: OnChainPoolsClient) -> None:
        payload = {
            "data": {
                "attributes": {
                    "address": "0xaaa",
                    "name": "PENDLE / WETH",
                    "reserve_in_usd": "2500000",
                    "volume_usd": {"h24": "1200000.25"},
                    "transactions": {"h24": {"buys": 800, "sells": 650}},
                    "pool_created_at": "2023-06-01T00:00:00Z",
                    "locked_liquidity_percentage": "85.5",
                }
            }
        }
        with aioresponses() as m:
            m.get(url(r"networks/polygon_pos/pools/0xaaa$"), payload=payload)

            result = await client.fetch_pool("polygon", "0xaaa")

        assert isinstance(result, Ok)
        pool = result.payload
        assert pool.network == "polygon"
        assert pool.tx_count_24h == 1450
        assert pool.volume_24h == 1_200_000.25
        assert pool.created_at.year == 2023
        assert pool.liquidity_lock.is_locked is True

    def test_primary_pool_prefers_deepest_reserve(self, pool_summaries: list[PoolSummary]) -> None:
        assert primary_pool(pool_summaries).address == "0xdeep"

    def test_primary_pool_falls_back_to_first(self) -> None:
        pools = [PoolSummary(id="eth_0x1", address="0x1"), PoolSummary(id="eth_0x2", address="0x2")]
        assert primary_pool(pools).address == "0x1"
        assert primary_pool([]) is None


# =============================================================================
# ContractExplorer
# =============================================================================


class TestContractExplorer:
    """Tests for the Etherscan client and its helpers."""

    @pytest.fixture
    def client(self, provider_config: ProviderConfig) -> ContractExplorerClient:
        return ContractExplorerClient(provider_config)

    def test_top_holders_integer_arithmetic(self) -> None:
        """Shares are exact even when balances exceed float precision."""
        supply = 10**30
        holders = [HolderBalance(address=f"0x{i}", quantity=425 * 10**26) for i in range(10)]
        holders += [HolderBalance(address="0xsmall", quantity=1)]

        assert top_holders_basis_points(holders, supply) == 4250

    def test_top_holders_uses_holder_sum_without_supply(self) -> None:
        holders = [HolderBalance(address="a", quantity=3), HolderBalance(address="b", quantity=1)]
        assert top_holders_basis_points(holders, None) == 10_000

    def test_top_holders_empty(self) -> None:
        assert top_holders_basis_points([], 1000) is None

    def test_source_analysis(self) -> None:
        source = """
            contract Token is Ownable, Pausable {
                function mint(address to, uint256 amount) external onlyOwner { _mint(to, amount); }
                function renounceOwnership() public { _owner = address(0); }
            }
        """
        analysis = analyze_contract_source(source)

        assert analysis.can_mint is True
        assert analysis.has_freeze is True
        assert analysis.ownership_renounced is True
        assert analysis.can_burn is False
        assert analysis.is_proxy is False

    @pytest.mark.asyncio
    async def test_fetch_combines_lookups(self, client: ContractExplorerClient, pendle_address: str) -> None:
        holders = [
            {"TokenHolderAddress": f"0x{i:040x}", "TokenHolderQuantity": str(425 * 10**26)}
            for i in range(10)
        ]
        with aioresponses() as m:
            m.get(explorer_url("getsourcecode"), payload={
                "status": "1", "message": "OK",
                "result": [{"SourceCode": "contract PENDLE { function burn() {} }", "ContractName": "PENDLE"}],
            })
            m.get(explorer_url("tokenholderlist"), payload={"status": "1", "message": "OK", "result": holders})
            m.get(explorer_url("tokensupply"), payload={"status": "1", "message": "OK", "result": str(10**30)})
            m.get(explorer_url("getcontractcreation"), payload={
                "status": "1", "message": "OK", "result": [{"contractCreator": "0xcreator"}],
            })

            result = await client.fetch("eth", pendle_address)

        assert isinstance(result, Ok)
        info = result.payload
        assert info.verified is True
        assert info.contract_name == "PENDLE"
        assert info.source_analysis.can_burn is True
        assert info.top_holders_bp == 4250
        assert info.creator_address == "0xcreator"

    @pytest.mark.asyncio
    async def test_optional_lookups_degrade(self, client: ContractExplorerClient, pendle_address: str) -> None:
        """Holder and creator failures leave the source result intact."""
        with aioresponses() as m:
            m.get(explorer_url("getsourcecode"), payload={
                "status": "1", "message": "OK", "result": [{"SourceCode": "", "ContractName": ""}],
            })
            m.get(explorer_url("tokenholderlist"), payload={
                "status": "0", "message": "NOTOK", "result": "API Pro endpoint",
            })
            m.get(explorer_url("tokensupply"), status=500)
            m.get(explorer_url("tokensupply"), status=500)
            m.get(explorer_url("getcontractcreation"), payload={"status": "1", "message": "OK", "result": []})

            result = await client.fetch("eth", pendle_address)

        assert isinstance(result, Ok)
        assert result.payload.verified is False
        assert result.payload.source_analysis is None
        assert result.payload.top_holders_bp is None
        assert result.payload.creator_address is None

    @pytest.mark.asyncio
    async def test_source_error_fails_lookup(self, client: ContractExplorerClient, pendle_address: str) -> None:
        with aioresponses() as m:
            m.get(explorer_url("getsourcecode"), payload={
                "status": "0", "message": "NOTOK", "result": "Invalid API Key",
            })
            m.get(explorer_url("tokenholderlist"), payload={"status": "1", "message": "OK", "result": []})
            m.get(explorer_url("tokensupply"), payload={"status": "1", "message": "OK", "result": "0"})
            m.get(explorer_url("getcontractcreation"), payload={"status": "1", "message": "OK", "result": []})

            result = await client.fetch("eth", pendle_address)

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL

    def test_supports_evm_only(self, client: ContractExplorerClient) -> None:
        assert client.supports("eth")
        assert client.supports("base")
        assert not client.supports("solana")


# =============================================================================
# SecurityAnalyzer
# =============================================================================


class TestSecurityAnalyzer:
    """Tests for the GoPlus client."""

    @pytest.fixture
    def client(self, provider_config: ProviderConfig) -> SecurityAnalyzerClient:
        return SecurityAnalyzerClient(provider_config)

    @pytest.mark.asyncio
    async def test_parses_flags(self, client: SecurityAnalyzerClient, pendle_address: str) -> None:
        payload = {
            "code": 1,
            "message": "OK",
            "result": {
                pendle_address: {
                    "is_open_source": "1",
                    "is_mintable": "0",
                    "is_honeypot": "0",
                    "is_blacklisted": "0",
                    "transfer_pausable": "0",
                    "owner_address": "0x0000000000000000000000000000000000000000",
                    "can_take_back_ownership": "0",
                    "buy_tax": "0.05",
                    "sell_tax": "0.1",
                    "holder_count": "41000",
                }
            },
        }
        with aioresponses() as m:
            m.get(url(r"token_security/1\?.*"), payload=payload)

            result = await client.fetch("eth", pendle_address)

        assert isinstance(result, Ok)
        report = result.payload
        assert report.ownership_renounced is True
        assert report.can_mint is False
        assert report.has_freeze is False
        assert report.is_open_source is True
        assert report.buy_tax == 5.0
        assert report.sell_tax == 10.0
        assert report.holder_count == 41_000
        assert report.risk_level is ContractRiskLevel.LOW

    @pytest.mark.asyncio
    async def test_take_back_ownership_is_not_renounced(self, client: SecurityAnalyzerClient, pendle_address: str) -> None:
        payload = {
            "code": 1,
            "result": {
                pendle_address: {
                    "owner_address": "",
                    "can_take_back_ownership": "1",
                    "is_mintable": "1",
                }
            },
        }
        with aioresponses() as m:
            m.get(url(r"token_security/1\?.*"), payload=payload)

            result = await client.fetch("eth", pendle_address)

        report = result.payload
        assert report.ownership_renounced is False
        assert report.risk_level is ContractRiskLevel.HIGH
        assert report.high_risk_count == 1
        assert report.moderate_risk_count == 1

    @pytest.mark.asyncio
    async def test_not_indexed_is_logical(self, client: SecurityAnalyzerClient, pendle_address: str) -> None:
        with aioresponses() as m:
            m.get(url(r"token_security/1\?.*"), payload={"code": 1, "result": {}})

            result = await client.fetch("eth", pendle_address)

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL

    @pytest.mark.asyncio
    async def test_error_code_is_logical(self, client: SecurityAnalyzerClient, pendle_address: str) -> None:
        with aioresponses() as m:
            m.get(url(r"token_security/56\?.*"), payload={"code": 4029, "message": "too many requests"})

            result = await client.fetch("bsc", pendle_address)

        assert isinstance(result, Err)
        assert "4029" in result.detail


# =============================================================================
# TVL
# =============================================================================


class TestTvlClient:
    """Tests for the DeFiLlama client."""

    @pytest.fixture
    def protocols(self) -> list[dict]:
        return [
            {"name": "Pendle Wrapper", "symbol": "-", "slug": "pendle-wrapper"},
            {"name": "Pendle", "symbol": "PENDLE", "slug": "pendle"},
            {"name": "Aave V3", "symbol": "AAVE", "slug": "aave-v3"},
        ]

    @pytest.fixture
    def protocol(self) -> dict:
        history = [100.0, 100.0, 110.0, 120.0, 125.0, 130.0, 140.0, 150.0, 165.0]
        return {
            "name": "Pendle",
            "category": "Yield",
            "chains": ["Ethereum", "Arbitrum", "Base"],
            "currentChainTvls": {"Ethereum": 90, "Arbitrum": 60, "Base": 15, "staking": 500, "Ethereum-staking": 5},
            "tvl": [{"date": i, "totalLiquidityUSD": v} for i, v in enumerate(history)],
        }

    @pytest.mark.asyncio
    async def test_fetch_matches_protocol_and_parses(
        self, provider_config: ProviderConfig, protocols: list[dict], protocol: dict
    ) -> None:
        client = TvlClient(provider_config)
        with aioresponses() as m:
            m.get(url(r"protocols$"), payload=protocols)
            m.get(url(r"protocol/pendle$"), payload=protocol)

            result = await client.fetch("PENDLE", "Pendle")

        assert isinstance(result, Ok)
        tvl = result.payload
        assert tvl.slug == "pendle"
        assert tvl.tvl == 165.0
        assert tvl.tvl_change_1d == pytest.approx(10.0)
        assert tvl.tvl_change_7d == pytest.approx(65.0)
        assert tvl.chain_distribution == "Ethereum + Arbitrum + 1 more"
        assert len(tvl.history) == 7

    @pytest.mark.asyncio
    async def test_protocol_list_is_cached(
        self, provider_config: ProviderConfig, protocols: list[dict], protocol: dict
    ) -> None:
        """The second lookup is served from the identity cache."""
        client = TvlClient(provider_config, cache=IdentityCache(InMemoryKeyValueStore()))
        with aioresponses() as m:
            m.get(url(r"protocols$"), payload=protocols)
            m.get(url(r"protocol/pendle$"), payload=protocol)
            m.get(url(r"protocol/pendle$"), payload=protocol)

            first = await client.fetch("PENDLE", "Pendle")
            second = await client.fetch("PENDLE", "Pendle")

        assert isinstance(first, Ok)
        assert isinstance(second, Ok)

    @pytest.mark.asyncio
    async def test_no_match_is_logical(self, provider_config: ProviderConfig, protocols: list[dict]) -> None:
        client = TvlClient(provider_config)
        with aioresponses() as m:
            m.get(url(r"protocols$"), payload=protocols)

            result = await client.fetch("XYZ", "Obscure")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL

    def test_tvl_change_edges(self) -> None:
        assert tvl_change([1.0], 1) is None
        assert tvl_change([0.0, 5.0], 1) == 0.0
        assert tvl_change([100.0, 80.0], 1) == pytest.approx(-20.0)

    def test_chain_distribution(self) -> None:
        assert format_chain_distribution({}) == "N/A"
        assert format_chain_distribution({"Ethereum": 1}) == "Ethereum"
        assert format_chain_distribution({"Ethereum": 1, "Base": 2}) == "Base + Ethereum"


# =============================================================================
# SocialProfile
# =============================================================================


class TestSocialProfileClient:
    """Tests for the X API client."""

    @pytest.fixture
    def profile(self) -> dict:
        return {
            "data": {
                "username": "pendle_fi",
                "verified": True,
                "created_at": "2021-02-10T08:00:00.000Z",
                "public_metrics": {"followers_count": 150000, "following_count": 300, "tweet_count": 6200},
            }
        }

    @pytest.mark.asyncio
    async def test_without_token_makes_no_request(self) -> None:
        client = SocialProfileClient(ProviderConfig(base_url="https://api.test"))

        with aioresponses() as m:
            result = await client.fetch("pendle_fi")

            assert not m.requests

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL

    @pytest.mark.asyncio
    async def test_first_observation_becomes_baseline(self, provider_config: ProviderConfig, profile: dict) -> None:
        client = SocialProfileClient(provider_config, cache=IdentityCache(InMemoryKeyValueStore()))

        with aioresponses() as m:
            m.get(url(r"users/by/username/pendle_fi\?.*"), payload=profile)
            grown = {"data": {**profile["data"], "public_metrics": {"followers_count": 165000}}}
            m.get(url(r"users/by/username/pendle_fi\?.*"), payload=grown)

            first = await client.fetch("@pendle_fi")
            second = await client.fetch("pendle_fi")

        assert first.payload.followers == 150_000
        assert first.payload.verified is True
        assert first.payload.follower_change.trend is Trend.NEUTRAL

        change = second.payload.follower_change
        assert change.trend is Trend.UP
        assert change.value == 15_000
        assert change.percentage == 10.0


    @pytest.mark.asyncio
    async def test_malformed_baseline_is_replaced(self, provider_config: ProviderConfig, profile: dict) -> None:
        """A baseline that is not a mapping is treated as missing, not as an error."""
        cache = IdentityCache(InMemoryKeyValueStore())
        await cache.put(baseline_key("pendle_fi"), [150000])
        client = SocialProfileClient(provider_config, cache=cache)

        with aioresponses() as m:
            m.get(url(r"users/by/username/pendle_fi\?.*"), payload=profile, repeat=True)

            first = await client.fetch("pendle_fi")
            second = await client.fetch("pendle_fi")

        assert isinstance(first, Ok)
        assert first.payload.follower_change.trend is Trend.NEUTRAL
        assert (await cache.get(baseline_key("pendle_fi"))).payload == {"followers": 150_000}
        assert second.payload.follower_change.value == 0
    @pytest.mark.asyncio
    async def test_error_document_is_logical(self, provider_config: ProviderConfig) -> None:
        client = SocialProfileClient(provider_config)
        with aioresponses() as m:
            m.get(url(r"users/by/username/ghost\?.*"), payload={"errors": [{"title": "Not Found Error"}]})

            result = await client.fetch("ghost")

        assert isinstance(result, Err)
        assert "Not Found" in result.detail

    def test_follower_growth(self) -> None:
        assert calculate_follower_growth(900, 1000).trend is Trend.DOWN
        assert calculate_follower_growth(900, 1000).percentage == -10.0
        assert calculate_follower_growth(5, 0).percentage == 0.0
        assert calculate_follower_growth(5, None).trend is Trend.NEUTRAL

    def test_extract_handle(self) -> None:
        assert extract_social_handle(CoinLinks(twitter_screen_name="@pendle_fi")) == "pendle_fi"
        assert extract_social_handle(CoinLinks(homepage=["https://x.com/pendle_fi"])) == "pendle_fi"
        assert extract_social_handle(CoinLinks(homepage=["https://pendle.finance"])) is None


# =============================================================================
# CodeActivity
# =============================================================================


class TestCodeActivityClient:
    """Tests for the GitHub client."""

    @pytest.fixture
    def repo(self) -> dict:
        return {
            "id": 1,
            "full_name": "pendle-finance/pendle-core-v2-public",
            "html_url": "https://github.com/pendle-finance/pendle-core-v2-public",
            "stargazers_count": 420,
            "forks_count": 130,
            "open_issues_count": 3,
            "private": False,
            "language": "Solidity",
            "license": {"spdx_id": "GPL-3.0"},
            "pushed_at": "2025-12-30T10:00:00Z",
        }

    @pytest.mark.asyncio
    async def test_fetch_counts_commits_and_contributors(self, provider_config: ProviderConfig, repo: dict) -> None:
        client = CodeActivityClient(provider_config)
        commits = [{"commit": {"committer": {"date": "2025-12-31T12:00:00Z"}}}] * 12
        with aioresponses() as m:
            m.get(url(r"repos/pendle-finance/pendle-core-v2-public$"), payload=repo)
            m.get(url(r"repos/pendle-finance/pendle-core-v2-public/commits\?.*"), payload=commits)
            m.get(url(r"repos/pendle-finance/pendle-core-v2-public/contributors\?.*"), payload=[{"login": "a"}] * 7)

            result = await client.fetch("https://github.com/pendle-finance/pendle-core-v2-public")

        assert isinstance(result, Ok)
        activity = result.payload
        assert activity.commit_count == 12
        assert activity.contributor_count == 7
        assert activity.status is ActivityStatus.ACTIVE
        assert activity.is_open_source is True
        assert activity.license == "GPL-3.0"
        assert activity.last_commit_at.day == 31

    @pytest.mark.asyncio
    async def test_commit_failure_degrades_to_zero(self, provider_config: ProviderConfig, repo: dict) -> None:
        client = CodeActivityClient(provider_config)
        with aioresponses() as m:
            m.get(url(r"repos/o/r$"), payload=repo)
            m.get(url(r"repos/o/r/commits\?.*"), status=409, payload={"message": "Git Repository is empty."})
            m.get(url(r"repos/o/r/contributors\?.*"), payload=[])

            result = await client.fetch("o/r")

        assert isinstance(result, Ok)
        assert result.payload.commit_count == 0
        assert result.payload.status is ActivityStatus.INACTIVE
        assert result.payload.last_commit_at.day == 30

    @pytest.mark.asyncio
    async def test_missing_repo_is_logical(self, provider_config: ProviderConfig) -> None:
        client = CodeActivityClient(provider_config)
        with aioresponses() as m:
            m.get(url(r"repos/o/gone$"), status=404)
            m.get(url(r"repos/o/gone/commits\?.*"), status=404)
            m.get(url(r"repos/o/gone/contributors\?.*"), status=404)

            result = await client.fetch("o/gone")

        assert isinstance(result, Err)
        assert result.kind is FailureKind.LOGICAL

    @pytest.mark.asyncio
    async def test_org_url_is_not_a_repository(self, provider_config: ProviderConfig) -> None:
        client = CodeActivityClient(provider_config)

        result = await client.fetch("https://github.com/pendle-finance")

        assert isinstance(result, Err)

    @pytest.mark.parametrize(
        "ref, expected",
        [
            ("pendle-finance/pendle-core-v2-public", ("pendle-finance", "pendle-core-v2-public")),
            ("https://github.com/Uniswap/v3-core.git", ("Uniswap", "v3-core")),
            ("https://github.com/Uniswap", None),
            ("not a repo", None),
        ],
    )
    def test_parse_repo(self, ref: str, expected) -> None:
        assert parse_repo(ref) == expected

    def test_extract_repo_skips_org_links(self) -> None:
        links = CoinLinks(repos_github=["https://github.com/pendle-finance", "https://github.com/pendle-finance/sdk"])
        assert extract_repo(links) == "pendle-finance/sdk"

    def test_activity_status(self) -> None:
        assert activity_status(11) is ActivityStatus.ACTIVE
        assert activity_status(10) is ActivityStatus.STALE
        assert activity_status(0) is ActivityStatus.INACTIVE
