"""
Aggregation orchestrator.

Fans out to the provider clients a scan needs and collects one
ProviderResult per issued call.

Rules:
1. MarketData is always issued, immediately
2. Address-bound calls (pools, contract explorer, security analyzer) are
   skipped when the token has no contract address or the provider does
   not cover its network. Skipping is not a failure
3. Social and code-activity calls use the handles from the request, or
   wait for MarketData and read the project links
4. Every call runs as its own task: one failing call never affects its
   siblings
5. An overall deadline bounds the whole fan-out. Calls still running at
   the deadline are cancelled and reported as transport failures

NO scoring here.
"""

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass, fields
from typing import Any

from tokenhealth.core.models import ALL_CATEGORIES, Category, KnownHandles, ResolutionSource, ResolvedToken
from tokenhealth.core.payloads import (
    CodeActivity,
    ContractInfo,
    MarketData,
    PoolDetail,
    SecurityReport,
    SocialProfile,
    TvlData,
)
from tokenhealth.core.results import Err, Ok, ProviderResult, logical_error, transport_error
from tokenhealth.services.providers.code_activity import CodeActivityClient, extract_repo
from tokenhealth.services.providers.contract_explorer import ContractExplorerClient
from tokenhealth.services.providers.market_data import MarketDataClient
from tokenhealth.services.providers.onchain_pools import OnChainPoolsClient, primary_pool
from tokenhealth.services.providers.security_analyzer import SecurityAnalyzerClient
from tokenhealth.services.providers.social import SocialProfileClient, extract_social_handle
from tokenhealth.services.providers.tvl import TvlClient

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE = 25.0

DEADLINE_EXCEEDED = "deadline exceeded"

ALL_PROVIDERS = frozenset({"market", "pools", "contract", "security", "tvl", "social", "code"})
REDUCED_PROVIDERS = frozenset({"market", "pools", "security"})

# Providers feeding each category. MarketData is always issued.
CATEGORY_PROVIDERS: dict[Category, frozenset[str]] = {
    Category.SECURITY: frozenset({"pools", "contract", "security"}),
    Category.LIQUIDITY: frozenset({"pools", "tvl"}),
    Category.TOKENOMICS: frozenset({"contract", "security"}),
    Category.COMMUNITY: frozenset({"social"}),
    Category.DEVELOPMENT: frozenset({"code"}),
}


def providers_for(categories: Iterable[Category]) -> frozenset[str]:
    """Provider slots needed for a set of categories."""
    wanted = {"market"}
    for category in categories:
        wanted |= CATEGORY_PROVIDERS[category]
    return frozenset(wanted)


@dataclass
class ProviderClients:
    """The provider client roster, wired by ServiceFactory."""

    market: MarketDataClient
    pools: OnChainPoolsClient
    explorer: ContractExplorerClient
    security: SecurityAnalyzerClient
    tvl: TvlClient
    social: SocialProfileClient
    code: CodeActivityClient


@dataclass(frozen=True)
class ProviderBundle:
    """
    One result per provider slot.

    None means the call was not issued (skipped), which is different from
    an Err (issued and failed).
    """

    market: ProviderResult[MarketData] | None = None
    pools: ProviderResult[PoolDetail] | None = None
    contract: ProviderResult[ContractInfo] | None = None
    security: ProviderResult[SecurityReport] | None = None
    tvl: ProviderResult[TvlData] | None = None
    social: ProviderResult[SocialProfile] | None = None
    code: ProviderResult[CodeActivity] | None = None

    def issued(self) -> dict[str, ProviderResult[Any]]:
        """Results of the calls that were issued, by slot."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def succeeded(self) -> list[str]:
        """Slots whose call returned Ok."""
        return [name for name, result in self.issued().items() if isinstance(result, Ok)]

    def failures(self) -> dict[str, Err]:
        return {name: result for name, result in self.issued().items() if isinstance(result, Err)}

    @property
    def all_transport_failures(self) -> bool:
        """True when calls were issued and every one failed in transport."""
        issued = self.issued()
        return bool(issued) and all(
            isinstance(result, Err) and result.is_transport for result in issued.values()
        )


class AggregationOrchestrator:
    """
    Issues provider calls for a resolved token under an overall deadline.

    Usage:
        orchestrator = AggregationOrchestrator(clients, deadline=25)
        bundle = await orchestrator.aggregate(token, handles)
    """

    providers: frozenset[str] = ALL_PROVIDERS

    def __init__(self, clients: ProviderClients, deadline: float = DEFAULT_DEADLINE):
        """
        Args:
            clients: Provider client roster
            deadline: Overall fan-out deadline, seconds
        """
        self._clients = clients
        self._deadline = deadline

    async def aggregate(
        self,
        token: ResolvedToken,
        handles: KnownHandles | None = None,
        categories: Iterable[Category] = ALL_CATEGORIES,
    ) -> ProviderBundle:
        """
        Fetch everything the requested categories need.

        Args:
            token: Resolved identity
            handles: Caller-supplied social/code handles
            categories: Categories to gather signals for

        Returns:
            ProviderBundle with one entry per issued call
        """
        handles = handles or KnownHandles()
        wanted = providers_for(categories) & self.providers
        clients = self._clients

        tasks: dict[str, asyncio.Task] = {}

        def issue(slot: str, coro: Awaitable[Any]) -> None:
            tasks[slot] = asyncio.create_task(coro, name=f"provider:{slot}")

        issue("market", clients.market.fetch(token))
        market_task = tasks["market"]

        address = token.contract_address
        network = token.network
        if address:
            if "pools" in wanted and clients.pools.supports(network):
                issue("pools", self._fetch_pools(network, address))
            if "contract" in wanted and clients.explorer.supports(network):
                issue("contract", clients.explorer.fetch(network, address))
            if "security" in wanted and clients.security.supports(network):
                issue("security", clients.security.fetch(network, address))
        else:
            logger.info(f"No contract address for {token.id}, address-bound providers skipped")

        if "tvl" in wanted:
            issue("tvl", self._fetch_tvl(token, market_task))
        if "social" in wanted:
            issue("social", self._fetch_social(handles.social, market_task))
        if "code" in wanted:
            issue("code", self._fetch_code(handles.code_repo, market_task))

        logger.debug(f"Issued {len(tasks)} provider calls for {token.id}: {sorted(tasks)}")

        _, pending = await asyncio.wait(tasks.values(), timeout=self._deadline)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning(
                f"Deadline of {self._deadline}s exceeded for {token.id}, abandoned: "
                f"{sorted(slot for slot, task in tasks.items() if task in pending)}"
            )
            await asyncio.gather(*pending, return_exceptions=True)

        results = {slot: self._collect(slot, task, task in pending) for slot, task in tasks.items()}
        bundle = ProviderBundle(**results)

        logger.info(
            f"Aggregated {token.id}: ok={bundle.succeeded()} "
            f"failed={sorted(bundle.failures())}"
        )
        return bundle

    def _collect(self, slot: str, task: asyncio.Task, abandoned: bool) -> ProviderResult[Any] | None:
        if abandoned:
            return transport_error(slot, DEADLINE_EXCEEDED)

        error = task.exception()
        if error is not None:
            logger.error(f"Provider call {slot} crashed: {type(error).__name__}: {error}", exc_info=error)
            return logical_error(slot, f"unexpected error: {type(error).__name__}")

        return task.result()

    async def _await_market(self, market_task: asyncio.Task) -> MarketData | None:
        try:
            result = await asyncio.shield(market_task)
        except Exception:
            # The market slot reports its own crash
            return None
        return result.payload if isinstance(result, Ok) else None

    async def _fetch_pools(self, network: str, address: str) -> ProviderResult[PoolDetail]:
        """List pools, then fetch the primary one."""
        pools = await self._clients.pools.fetch_pools(network, address)
        if not isinstance(pools, Ok):
            return pools

        primary = primary_pool(pools.payload)
        if primary is None:
            return logical_error(self._clients.pools.name, "no pools found")

        return await self._clients.pools.fetch_pool(network, primary.address)

    async def _fetch_tvl(self, token: ResolvedToken, market_task: asyncio.Task) -> ProviderResult[TvlData]:
        if token.source is ResolutionSource.SEARCH and (token.symbol or token.name):
            symbol, name = token.symbol, token.name
        else:
            market = await self._await_market(market_task)
            if market:
                symbol, name = market.symbol, market.name
            else:
                symbol, name = token.symbol, token.name

        if not symbol and not name:
            return logical_error(self._clients.tvl.name, "no symbol or name to match")

        return await self._clients.tvl.fetch(symbol, name)

    async def _fetch_social(self, handle: str | None, market_task: asyncio.Task) -> ProviderResult[SocialProfile] | None:
        if not handle:
            market = await self._await_market(market_task)
            handle = extract_social_handle(market.links) if market else None
        if not handle:
            logger.debug("No social handle known, social profile skipped")
            return None
        return await self._clients.social.fetch(handle)

    async def _fetch_code(self, repo: str | None, market_task: asyncio.Task) -> ProviderResult[CodeActivity] | None:
        if not repo:
            market = await self._await_market(market_task)
            repo = extract_repo(market.links) if market else None
        if not repo:
            logger.debug("No code repository known, code activity skipped")
            return None
        return await self._clients.code.fetch(repo)


class ReducedAggregationOrchestrator(AggregationOrchestrator):
    """
    Fallback path: re-issues MarketData, OnChainPools and SecurityAnalyzer
    only, to approximate the full output when the primary path failed.
    """

    providers = REDUCED_PROVIDERS
