"""
Etherscan v2 (multichain) contract explorer client.

Responsibilities:
1. Verified source lookup and capability analysis of the source text
2. Top holders and total supply -> top-10 concentration in basis points
3. Contract creator lookup

Only the source lookup is essential. Holder, supply and creator lookups
degrade to None on their own failure.

NO business logic, NO scoring.
"""

import asyncio
import logging
from typing import Any

from tokenhealth.core.payloads import ContractInfo, HolderBalance, SourceAnalysis
from tokenhealth.core.results import Ok, ProviderResult
from tokenhealth.services.providers.base import ProviderClient, to_int

logger = logging.getLogger(__name__)

# Short network code -> EVM chain id
CHAIN_IDS = {
    "eth": 1,
    "bsc": 56,
    "polygon": 137,
    "arbitrum": 42161,
    "optimism": 10,
    "base": 8453,
    "avax": 43114,
    "ftm": 250,
}

TOP_HOLDERS = 10
HOLDERS_PAGE_SIZE = 20

ZERO_OWNER_MARKERS = ("owner = address(0)", "_owner = address(0)")
MINT_MARKERS = ("function mint", "_mint(", "mint(")
BURN_MARKERS = ("function burn", "_burn(", "burn(")
FREEZE_MARKERS = ("freeze", "blacklist", "pausable", "function pause")
MULTISIG_MARKERS = ("multisig", "multi-sig", "required(")
PROXY_MARKERS = ("delegatecall", "proxy", "upgradeable")


def analyze_contract_source(source: str) -> SourceAnalysis:
    """
    Detect contract capabilities by inspecting verified source text.

    Pattern matching is case-insensitive. It reports what the code can do,
    not what has happened on chain.

    Args:
        source: Concatenated verified source

    Returns:
        SourceAnalysis with one flag per capability
    """
    text = source.lower()

    def has_any(markers: tuple[str, ...]) -> bool:
        return any(marker in text for marker in markers)

    return SourceAnalysis(
        ownership_renounced=(
            "renounceownership" in text and has_any(ZERO_OWNER_MARKERS)
        ),
        can_mint=has_any(MINT_MARKERS),
        can_burn=has_any(BURN_MARKERS),
        has_freeze=has_any(FREEZE_MARKERS),
        is_multisig=(
            has_any(MULTISIG_MARKERS) or ("threshold" in text and "owners" in text)
        ),
        is_proxy=has_any(PROXY_MARKERS),
    )


def top_holders_basis_points(holders: list[HolderBalance], total_supply: int | None) -> int | None:
    """
    Share of supply held by the top 10 holders, in basis points.

    Integer arithmetic only: balances can exceed float precision.
    Falls back to the sum of the listed holders when total supply is
    unknown.

    >>> top_holders_basis_points([HolderBalance(address="a", quantity=425)], 1000)
    4250
    """
    if not holders:
        return None

    supply = total_supply or sum(h.quantity for h in holders)
    if supply <= 0:
        return None

    ranked = sorted(holders, key=lambda h: h.quantity, reverse=True)
    top = sum(h.quantity for h in ranked[:TOP_HOLDERS])
    return min(top * 10_000 // supply, 10_000)


def parse_source(data: dict[str, Any]) -> tuple[bool, str | None, SourceAnalysis | None]:
    entry = data["result"][0]
    source = entry.get("SourceCode") or ""
    if not source:
        return False, None, None
    return True, entry.get("ContractName") or None, analyze_contract_source(source)


def parse_holders(data: dict[str, Any]) -> list[HolderBalance]:
    return [
        HolderBalance(address=item["TokenHolderAddress"], quantity=int(item["TokenHolderQuantity"]))
        for item in data["result"]
    ]


def parse_creator(data: dict[str, Any]) -> str | None:
    result = data["result"]
    if not result:
        return None
    return result[0].get("contractCreator") or None


class ContractExplorerClient(ProviderClient):
    """Etherscan v2 multichain client (one API key for all EVM chains)."""

    name = "contract_explorer"

    def _check_payload(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return "unexpected response"
        if data.get("status") == "0" and str(data.get("message", "")).startswith("NOTOK"):
            return f"provider error: {data.get('result')}"
        return None

    def supports(self, network: str) -> bool:
        return network in CHAIN_IDS

    async def _call(self, network: str, module: str, action: str, **params: Any) -> ProviderResult[Any]:
        query = {
            "chainid": CHAIN_IDS[network],
            "module": module,
            "action": action,
            **params,
        }
        if self._config.api_key:
            query["apikey"] = self._config.api_key
        return await self._get_json("", params=query)

    async def fetch(self, network: str, address: str) -> ProviderResult[ContractInfo]:
        """
        Fetch verification status, holders and creator of a contract.

        Args:
            network: Short network code (must be in CHAIN_IDS)
            address: Contract address

        Returns:
            Ok(ContractInfo) or the Err of the source lookup
        """
        logger.debug(f"Etherscan contract: {network}/{address}")

        source_res, holders_res, supply_res, creator_res = await asyncio.gather(
            self._call(network, "contract", "getsourcecode", address=address),
            self._call(
                network, "token", "tokenholderlist",
                contractaddress=address, page=1, offset=HOLDERS_PAGE_SIZE,
            ),
            self._call(network, "stats", "tokensupply", contractaddress=address),
            self._call(network, "contract", "getcontractcreation", contractaddresses=address),
        )

        source = self._parse(source_res, parse_source)
        if not isinstance(source, Ok):
            return source
        verified, contract_name, analysis = source.payload

        holders = self._optional(self._parse(holders_res, parse_holders), "holders") or []
        total_supply = self._optional(self._parse(supply_res, lambda d: to_int(d["result"])), "supply")
        creator = self._optional(self._parse(creator_res, parse_creator), "creator")

        info = ContractInfo(
            address=address,
            verified=verified,
            contract_name=contract_name,
            source_analysis=analysis,
            holders=holders,
            total_supply=total_supply,
            top_holders_bp=top_holders_basis_points(holders, total_supply),
            creator_address=creator,
        )
        return Ok(info, fetched_at=source.fetched_at)

    def _optional(self, result: ProviderResult[Any], what: str) -> Any:
        if isinstance(result, Ok):
            return result.payload
        logger.debug(f"Etherscan {what} unavailable: {result.detail}")
        return None
