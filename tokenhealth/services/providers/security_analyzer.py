"""
GoPlus token security client.

Turns the GoPlus '0'/'1' flag document into a SecurityReport and derives
an overall risk level from it:

    High     - any high-risk flag
    Moderate - more than one moderate flag
    Low      - exactly one moderate flag, or open source with none
    Unknown  - nothing to go on

NO business logic, NO scoring.
"""

import logging
from typing import Any

from tokenhealth.core.payloads import ContractRiskLevel, SecurityReport
from tokenhealth.core.results import ProviderResult
from tokenhealth.services.providers.base import ProviderClient, to_float, to_int
from tokenhealth.services.providers.contract_explorer import CHAIN_IDS

logger = logging.getLogger(__name__)

HIGH_RISK_FLAGS = (
    "is_honeypot",
    "can_take_back_ownership",
    "owner_change_balance",
    "selfdestruct",
    "cannot_sell_all",
)

MODERATE_RISK_FLAGS = (
    "is_mintable",
    "is_blacklisted",
    "slippage_modifiable",
    "is_proxy",
    "transfer_pausable",
    "external_call",
)

# Owner addresses that mean "nobody owns the contract"
NULL_OWNERS = frozenset(
    {
        "",
        "0x0000000000000000000000000000000000000000",
        "0x000000000000000000000000000000000000dead",
    }
)


def _flag(value: Any) -> bool | None:
    if value is None or value == "":
        return None
    return str(value).strip() == "1"


def _tax_percent(value: Any) -> float | None:
    # GoPlus reports taxes as fractions ("0.05" == 5%)
    fraction = to_float(value)
    if fraction is None:
        return None
    return round(fraction * 100, 2)


def is_null_owner(owner: str | None) -> bool:
    return owner is None or owner.lower() in NULL_OWNERS


def derive_risk_level(high_count: int, moderate_count: int, is_open_source: bool | None) -> ContractRiskLevel:
    if high_count > 0:
        return ContractRiskLevel.HIGH
    if moderate_count > 1:
        return ContractRiskLevel.MODERATE
    if moderate_count == 1:
        return ContractRiskLevel.LOW
    if is_open_source:
        return ContractRiskLevel.LOW
    return ContractRiskLevel.UNKNOWN


def parse_security(data: dict[str, Any], address: str) -> SecurityReport:
    """
    Build a SecurityReport from a token_security response.

    Ownership is renounced when the owner is empty, zero or dead AND the
    contract cannot take ownership back.

    Raises:
        KeyError: token not indexed by the provider
    """
    result = data.get("result") or {}
    entry = result.get(address.lower())
    if entry is None:
        if not result:
            raise KeyError(f"token {address} not indexed")
        entry = next(iter(result.values()))

    high_count = sum(1 for name in HIGH_RISK_FLAGS if _flag(entry.get(name)))
    moderate_count = sum(1 for name in MODERATE_RISK_FLAGS if _flag(entry.get(name)))
    is_open_source = _flag(entry.get("is_open_source"))

    owner = entry.get("owner_address")
    take_back = _flag(entry.get("can_take_back_ownership"))
    if owner is None and take_back is None:
        renounced = None
    else:
        renounced = is_null_owner(owner) and not take_back

    return SecurityReport(
        ownership_renounced=renounced,
        can_mint=_flag(entry.get("is_mintable")),
        has_blacklist=_flag(entry.get("is_blacklisted")),
        slippage_modifiable=_flag(entry.get("slippage_modifiable")),
        is_honeypot=_flag(entry.get("is_honeypot")),
        owner_can_change_balance=_flag(entry.get("owner_change_balance")),
        is_proxy=_flag(entry.get("is_proxy")),
        has_external_calls=_flag(entry.get("external_call")),
        transfer_pausable=_flag(entry.get("transfer_pausable")),
        is_selfdestructable=_flag(entry.get("selfdestruct")),
        is_open_source=is_open_source,
        buy_tax=_tax_percent(entry.get("buy_tax")),
        sell_tax=_tax_percent(entry.get("sell_tax")),
        owner_address=owner or None,
        creator_address=entry.get("creator_address") or None,
        holder_count=to_int(entry.get("holder_count")),
        high_risk_count=high_count,
        moderate_risk_count=moderate_count,
        risk_level=derive_risk_level(high_count, moderate_count, is_open_source),
    )


class SecurityAnalyzerClient(ProviderClient):
    """GoPlus Security v1 client (EVM chains)."""

    name = "security_analyzer"

    def _check_payload(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return "unexpected response"
        # code 1 == success
        if data.get("code") not in (1, "1"):
            return f"provider error {data.get('code')}: {data.get('message', '')}"
        return None

    def supports(self, network: str) -> bool:
        return network in CHAIN_IDS

    async def fetch(self, network: str, address: str) -> ProviderResult[SecurityReport]:
        """
        Fetch security flags of a token contract.

        Returns:
            Ok(SecurityReport), or Err (LOGICAL when the token is not indexed)
        """
        logger.debug(f"GoPlus security: {network}/{address}")
        result = await self._get_json(
            f"token_security/{CHAIN_IDS[network]}",
            params={"contract_addresses": address},
        )
        return self._parse(result, lambda data: parse_security(data, address))
