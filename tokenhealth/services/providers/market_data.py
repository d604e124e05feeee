"""
CoinGecko market data client.

Responsibilities:
1. Text search for coins (resolver)
2. Coin lookup by id: price, market cap, volume, community and developer
   statistics, platform map and project links
3. Coin lookup by contract address on a given platform

NO business logic, NO scoring.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from tokenhealth.core.models import ResolvedToken
from tokenhealth.core.payloads import CoinLinks, CoinSearchHit, MarketData
from tokenhealth.core.results import Ok, ProviderResult
from tokenhealth.services.providers.base import ProviderClient, ProviderConfig, to_float, to_int

logger = logging.getLogger(__name__)

# Short network code -> CoinGecko asset platform id
NETWORK_TO_PLATFORM = {
    "eth": "ethereum",
    "bsc": "binance-smart-chain",
    "polygon": "polygon-pos",
    "ftm": "fantom",
    "avax": "avalanche",
    "arbitrum": "arbitrum-one",
    "optimism": "optimistic-ethereum",
    "base": "base",
    "solana": "solana",
}

COIN_PARAMS = {
    "localization": "false",
    "tickers": "false",
    "market_data": "true",
    "community_data": "true",
    "developer_data": "true",
    "sparkline": "false",
}

# A coin document fetched during resolution is reused by the same scan
COIN_REUSE_SECONDS = 30.0


def _usd(value: Any) -> float | None:
    if isinstance(value, dict):
        return to_float(value.get("usd"))
    return to_float(value)


def parse_search_hits(data: dict[str, Any]) -> list[CoinSearchHit]:
    return [CoinSearchHit.model_validate(coin) for coin in data.get("coins") or []]


def parse_market_data(data: dict[str, Any]) -> MarketData:
    """
    Flatten a /coins/{id} document into MarketData.

    Raises:
        KeyError / pydantic.ValidationError: on an unusable document
    """
    market = data.get("market_data") or {}
    community = data.get("community_data") or {}
    developer = data.get("developer_data") or {}
    links = data.get("links") or {}
    repos = (links.get("repos_url") or {}).get("github") or []

    return MarketData(
        id=data["id"],
        symbol=data.get("symbol") or "",
        name=data.get("name") or "",
        market_cap_rank=data.get("market_cap_rank"),
        current_price=_usd(market.get("current_price")),
        price_change_24h=to_float(market.get("price_change_percentage_24h")),
        market_cap=_usd(market.get("market_cap")),
        market_cap_change_24h=to_float(market.get("market_cap_change_percentage_24h")),
        total_volume=_usd(market.get("total_volume")),
        twitter_followers=to_int(community.get("twitter_followers")),
        reddit_subscribers=to_int(community.get("reddit_subscribers")),
        telegram_users=to_int(community.get("telegram_channel_user_count")),
        commit_count_4_weeks=to_int(developer.get("commit_count_4_weeks")),
        stars=to_int(developer.get("stars")),
        forks=to_int(developer.get("forks")),
        pull_request_contributors=to_int(developer.get("pull_request_contributors")),
        # Native coins carry a {"": ""} platform entry
        platforms={k: v for k, v in (data.get("platforms") or {}).items() if k and v},
        links=CoinLinks(
            homepage=[url for url in links.get("homepage") or [] if url],
            repos_github=[url for url in repos if url],
            twitter_screen_name=links.get("twitter_screen_name") or None,
            telegram_channel_identifier=links.get("telegram_channel_identifier") or None,
        ),
    )


class MarketDataClient(ProviderClient):
    """
    CoinGecko v3 client.

    The demo API key is optional; without it the public rate limit applies
    and a 429 comes back as a logical error.
    """

    name = "market_data"

    def __init__(
        self,
        config: ProviderConfig,
        search_timeout: float | None = None,
        reuse_seconds: float = COIN_REUSE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(config)
        self._search_timeout = search_timeout or config.timeout
        self._reuse_seconds = reuse_seconds
        self._clock = clock
        self._recent: dict[str, tuple[float, Ok[MarketData]]] = {}

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._config.api_key:
            headers["x-cg-demo-api-key"] = self._config.api_key
        return headers

    def _check_payload(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return None
        if data.get("error"):
            return f"provider error: {data['error']}"
        status = data.get("status")
        if isinstance(status, dict) and status.get("error_code"):
            return f"provider error {status['error_code']}: {status.get('error_message', '')}"
        return None

    async def search(self, query: str) -> ProviderResult[list[CoinSearchHit]]:
        """
        Search coins by free text.

        Args:
            query: Symbol or name fragment

        Returns:
            Ok(list of hits, possibly empty) or Err
        """
        logger.debug(f"CoinGecko search: {query!r}")
        result = await self._get_json("search", params={"query": query}, timeout=self._search_timeout)
        return self._parse(result, parse_search_hits)

    async def fetch_coin(self, coin_id: str) -> ProviderResult[MarketData]:
        """
        Fetch the full coin document by CoinGecko id.

        A successful document is reused for `reuse_seconds`, so resolution
        and the market-data fetch of one scan share a single request.
        """
        now = self._clock()
        recent = self._recent.get(coin_id)
        if recent and now - recent[0] < self._reuse_seconds:
            logger.debug(f"CoinGecko coin: {coin_id} (reused)")
            return recent[1]

        logger.debug(f"CoinGecko coin: {coin_id}")
        result = await self._get_json(f"coins/{coin_id}", params=COIN_PARAMS)
        parsed = self._parse(result, parse_market_data)

        if isinstance(parsed, Ok):
            self._recent = {
                key: entry for key, entry in self._recent.items() if now - entry[0] < self._reuse_seconds
            }
            self._recent[coin_id] = (now, parsed)
        return parsed

    async def fetch_by_contract(self, network: str, address: str) -> ProviderResult[MarketData]:
        """Fetch the coin document by contract address on a network."""
        platform = NETWORK_TO_PLATFORM.get(network, "ethereum")
        logger.debug(f"CoinGecko contract: {platform}/{address}")
        result = await self._get_json(f"coins/{platform}/contract/{address}")
        return self._parse(result, parse_market_data)

    async def fetch(self, token: ResolvedToken) -> ProviderResult[MarketData]:
        """
        Fetch market data for a resolved token.

        Prefers the coin id; falls back to the contract address, then to
        the canonical id itself.
        """
        if token.coin_id:
            return await self.fetch_coin(token.coin_id)
        if token.contract_address:
            return await self.fetch_by_contract(token.network, token.contract_address)
        return await self.fetch_coin(token.id)
