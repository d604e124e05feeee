"""
GeckoTerminal on-chain pools client.

Two-stage lookup:
1. List the pools of a token (ids are '<network>_<pool address>')
2. Fetch details (reserve, volume, tx count, age, lock) of the primary pool

NO business logic, NO scoring.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from tokenhealth.core.payloads import LiquidityLock, PoolDetail, PoolSummary
from tokenhealth.core.results import ProviderResult
from tokenhealth.services.providers.base import ProviderClient, to_float, to_int

logger = logging.getLogger(__name__)

# Short network code -> GeckoTerminal network id, where they differ
GECKOTERMINAL_NETWORKS = {
    "polygon": "polygon_pos",
}

SUPPORTED_NETWORKS = frozenset(
    {"eth", "bsc", "polygon", "ftm", "avax", "arbitrum", "optimism", "base", "solana"}
)


def gecko_network(network: str) -> str:
    return GECKOTERMINAL_NETWORKS.get(network, network)


def parse_pools(data: dict[str, Any]) -> list[PoolSummary]:
    pools = []
    for item in data["data"]:
        attrs = item.get("attributes") or {}
        pools.append(
            PoolSummary(
                id=item["id"],
                address=attrs.get("address") or item["id"].split("_", 1)[-1],
                name=attrs.get("name") or "",
                reserve_in_usd=to_float(attrs.get("reserve_in_usd")),
            )
        )
    return pools


def primary_pool(pools: list[PoolSummary]) -> PoolSummary | None:
    """
    Pick the pool to inspect: highest USD reserve, else the first listed.
    """
    if not pools:
        return None
    with_reserve = [p for p in pools if p.reserve_in_usd is not None]
    if with_reserve:
        return max(with_reserve, key=lambda p: p.reserve_in_usd)
    return pools[0]


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _tx_count(transactions: Any) -> int | None:
    h24 = (transactions or {}).get("h24")
    if isinstance(h24, dict):
        buys = to_int(h24.get("buys")) or 0
        sells = to_int(h24.get("sells")) or 0
        return buys + sells
    return to_int(h24)


def _liquidity_lock(attrs: dict[str, Any]) -> LiquidityLock | None:
    locked = attrs.get("liquidity_locked")
    if isinstance(locked, dict):
        locked_until = _parse_timestamp(locked.get("locked_until"))
        duration = to_int(locked.get("duration_in_seconds"))
        if locked_until is None and duration:
            locked_until = datetime.now(timezone.utc) + timedelta(seconds=duration)
        return LiquidityLock(
            is_locked=bool(locked.get("is_locked")),
            locked_until=locked_until,
            duration_seconds=duration,
        )

    percentage = to_float(attrs.get("locked_liquidity_percentage"))
    if percentage is not None:
        return LiquidityLock(is_locked=percentage > 0)

    return None


def parse_pool_detail(data: dict[str, Any], network: str) -> PoolDetail:
    attrs = data["data"]["attributes"]
    return PoolDetail(
        address=attrs["address"],
        network=network,
        name=attrs.get("name") or "",
        reserve_in_usd=to_float(attrs.get("reserve_in_usd")),
        volume_24h=to_float((attrs.get("volume_usd") or {}).get("h24")),
        tx_count_24h=_tx_count(attrs.get("transactions")),
        created_at=_parse_timestamp(attrs.get("pool_created_at")),
        liquidity_lock=_liquidity_lock(attrs),
    )


class OnChainPoolsClient(ProviderClient):
    """GeckoTerminal v2 client."""

    name = "onchain_pools"

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json;version=20230302"}

    def _check_payload(self, data: Any) -> str | None:
        if isinstance(data, dict) and data.get("errors"):
            first = data["errors"][0] if isinstance(data["errors"], list) else data["errors"]
            return f"provider error: {first}"
        return None

    def supports(self, network: str) -> bool:
        return network in SUPPORTED_NETWORKS

    async def fetch_pools(self, network: str, address: str) -> ProviderResult[list[PoolSummary]]:
        """List the pools a token trades in."""
        logger.debug(f"GeckoTerminal pools: {network}/{address}")
        result = await self._get_json(f"networks/{gecko_network(network)}/tokens/{address}/pools")
        return self._parse(result, parse_pools)

    async def fetch_pool(self, network: str, pool_address: str) -> ProviderResult[PoolDetail]:
        """Fetch details of one pool."""
        logger.debug(f"GeckoTerminal pool: {network}/{pool_address}")
        result = await self._get_json(f"networks/{gecko_network(network)}/pools/{pool_address}")
        return self._parse(result, lambda data: parse_pool_detail(data, network))
