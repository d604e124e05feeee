"""
DeFiLlama TVL client.

Responsibilities:
1. Find the protocol slug of a token by symbol/name priority matching
   over the protocol list (the list is cached in the identity cache)
2. Fetch protocol TVL history, recent change and chain distribution

NO business logic, NO scoring.
"""

import logging
from typing import Any

from tokenhealth.core.payloads import TvlData
from tokenhealth.core.results import Ok, ProviderResult, logical_error
from tokenhealth.services.cache import TTLCache
from tokenhealth.services.providers.base import ProviderClient, ProviderConfig, to_float
from tokenhealth.utils.matching import match_by_priority

logger = logging.getLogger(__name__)

PROTOCOLS_CACHE_KEY = "defillama:protocols"
SPARKLINE_DAYS = 7

# Keys of currentChainTvls that are not chains
NON_CHAIN_KEYS = frozenset({"tvl", "staking", "pool2", "borrowed", "vesting", "offers"})


def tvl_change(history: list[float], days: int) -> float | None:
    """
    Percent change of the last point against the point `days` earlier.

    None when the history is too short; 0.0 when the earlier value is 0.
    """
    if len(history) < days + 1:
        return None
    current = history[-1]
    previous = history[-days - 1]
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


def format_chain_distribution(chain_tvls: dict[str, Any]) -> str:
    """
    Top chains by TVL as a short string.

    >>> format_chain_distribution({"Ethereum": 10, "Arbitrum": 5, "Base": 1, "BSC": 1})
    'Ethereum + Arbitrum + 2 more'
    """
    values = {
        chain: to_float(value) or 0.0
        for chain, value in (chain_tvls or {}).items()
        if "-" not in chain and chain.lower() not in NON_CHAIN_KEYS
    }
    chains = sorted(values, key=values.get, reverse=True)

    if not chains:
        return "N/A"
    if len(chains) == 1:
        return chains[0]
    if len(chains) == 2:
        return f"{chains[0]} + {chains[1]}"
    return f"{chains[0]} + {chains[1]} + {len(chains) - 2} more"


def parse_protocol(data: dict[str, Any], slug: str) -> TvlData:
    history = [
        value
        for point in data.get("tvl") or []
        if (value := to_float(point.get("totalLiquidityUSD"))) is not None
    ]
    current_tvl = history[-1] if history else to_float(data.get("currentTvl"))

    return TvlData(
        slug=slug,
        name=data.get("name") or "",
        category=data.get("category"),
        tvl=current_tvl,
        tvl_change_1d=tvl_change(history, 1),
        tvl_change_7d=tvl_change(history, 7),
        chains=[c for c in data.get("chains") or [] if c],
        chain_distribution=format_chain_distribution(data.get("currentChainTvls") or {}),
        history=history[-SPARKLINE_DAYS:],
    )


class TvlClient(ProviderClient):
    """DeFiLlama client (no API key)."""

    name = "tvl"

    def __init__(self, config: ProviderConfig, cache: TTLCache | None = None):
        """
        Args:
            config: Provider configuration
            cache: Identity cache for the protocol list (optional)
        """
        super().__init__(config)
        self._cache = cache

    async def fetch_protocols(self) -> ProviderResult[list[dict[str, Any]]]:
        """
        Fetch the protocol list, trimmed to name/symbol/slug.

        Served from the cache when available.
        """
        if self._cache:
            entry = await self._cache.get(PROTOCOLS_CACHE_KEY)
            if entry:
                return Ok(entry.payload, fetched_at=entry.computed_at)

        result = await self._get_json("protocols")
        result = self._parse(
            result,
            lambda data: [
                {"name": p.get("name"), "symbol": p.get("symbol"), "slug": p["slug"]}
                for p in data
                if p.get("slug")
            ],
        )

        if self._cache and isinstance(result, Ok):
            await self._cache.put(PROTOCOLS_CACHE_KEY, result.payload)

        return result

    async def find_protocol_slug(self, symbol: str, name: str) -> ProviderResult[str | None]:
        protocols = await self.fetch_protocols()
        if not isinstance(protocols, Ok):
            return protocols

        match = match_by_priority(
            protocols.payload,
            symbol,
            name,
            get_symbol=lambda p: p.get("symbol"),
            get_name=lambda p: p.get("name"),
        )
        return Ok(match["slug"] if match else None, fetched_at=protocols.fetched_at)

    async def fetch_protocol(self, slug: str) -> ProviderResult[TvlData]:
        logger.debug(f"DeFiLlama protocol: {slug}")
        result = await self._get_json(f"protocol/{slug}")
        return self._parse(result, lambda data: parse_protocol(data, slug))

    async def fetch(self, symbol: str, name: str) -> ProviderResult[TvlData]:
        """
        Fetch TVL data for the protocol matching a token.

        Returns:
            Ok(TvlData), or Err (LOGICAL when no protocol matches)
        """
        slug = await self.find_protocol_slug(symbol, name)
        if not isinstance(slug, Ok):
            return slug
        if slug.payload is None:
            return logical_error(self.name, f"no protocol matches {symbol!r}/{name!r}")
        return await self.fetch_protocol(slug.payload)
