"""
Identifier resolver.

Turns a raw user query into a best-effort canonical token identity.
Resolution order:

1. EVM contract address ('0x' + 40 hex)
2. Solana mint address (base58, 32 bytes)
3. 'network:address' pair
4. Market-data text search, then the chosen coin's platform map for the
   contract address

Resolution never fails: when nothing matches, the result is an
unresolved identity without a contract address, and the scan continues
with whatever the address-free providers can find.
"""

import logging
import re

from tokenhealth.core.models import ResolutionSource, ResolvedToken, TokenQuery
from tokenhealth.core.payloads import CoinSearchHit
from tokenhealth.core.protocols import MarketDataSource
from tokenhealth.core.results import Ok
from tokenhealth.services.cache import IdentityCache
from tokenhealth.services.providers.market_data import NETWORK_TO_PLATFORM
from tokenhealth.utils.matching import match_by_priority
from tokenhealth.utils.validators import is_evm_address, is_solana_address

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "eth"

KNOWN_NETWORKS = frozenset(NETWORK_TO_PLATFORM)

# Long (platform) name -> short network code
NETWORK_MAP = {platform: code for code, platform in NETWORK_TO_PLATFORM.items()}

TOKEN_ID_RE = re.compile(r"[^A-Za-z0-9-]")


def normalize_query(raw: str) -> str:
    """
    Trim the query and strip one leading '$'.

    >>> normalize_query("  $PENDLE ")
    'PENDLE'
    """
    text = raw.strip()
    if text.startswith("$"):
        text = text[1:]
    return text.strip()


def clean_token_id(raw: str) -> str:
    """
    Provider-id compatible form of a query.

    >>> clean_token_id("$Pendle Finance!")
    'pendlefinance'
    """
    return TOKEN_ID_RE.sub("", normalize_query(raw)).lower()


def map_network(name: str | None) -> str:
    """
    Map a network name to its short code.

    Short codes map to themselves; unknown names map to 'eth'.

    >>> map_network("binance-smart-chain")
    'bsc'
    >>> map_network("arbitrum")
    'arbitrum'
    >>> map_network("tron")
    'eth'
    """
    key = (name or "").strip().lower()
    if key in KNOWN_NETWORKS:
        return key
    return NETWORK_MAP.get(key, DEFAULT_NETWORK)


def pick_platform_address(platforms: dict[str, str], hint: str | None) -> tuple[str | None, str]:
    """
    Choose a contract address from a coin's platform map.

    Preference: hinted network, Ethereum, first non-empty platform.

    Returns:
        Tuple of (address or None, network code)
    """
    if hint:
        platform = NETWORK_TO_PLATFORM.get(hint)
        if platform and platforms.get(platform):
            return platforms[platform], hint

    if platforms.get("ethereum"):
        return platforms["ethereum"], "eth"

    for platform, address in platforms.items():
        if address:
            return address, map_network(platform)

    return None, hint or DEFAULT_NETWORK


class IdentifierResolver:
    """
    Resolves queries to ResolvedToken.

    Search results are cached in the identity cache, keyed by the cleaned
    query and network hint.
    """

    def __init__(self, market: MarketDataSource, cache: IdentityCache | None = None):
        """
        Args:
            market: Market-data search and coin lookup
            cache: Identity cache (optional)
        """
        self._market = market
        self._cache = cache

    async def resolve(self, query: TokenQuery) -> ResolvedToken:
        """
        Resolve a query. Never raises.

        Args:
            query: Raw query with optional network hint

        Returns:
            ResolvedToken (source=UNRESOLVED when nothing matched)
        """
        text = normalize_query(query.query)
        hint = map_network(query.network_hint) if query.network_hint else None
        network = hint or DEFAULT_NETWORK

        if is_evm_address(text):
            logger.debug(f"Resolved {text[:10]}... as EVM address on {network}")
            return ResolvedToken(
                id=text.lower(),
                contract_address=text,
                network=network,
                source=ResolutionSource.ADDRESS,
            )

        if is_solana_address(text):
            logger.debug(f"Resolved {text[:8]}... as Solana mint")
            return ResolvedToken(
                id=text,
                contract_address=text,
                network="solana",
                source=ResolutionSource.ADDRESS,
            )

        if ":" in text:
            network_part, _, address = text.partition(":")
            address = address.strip()
            if network_part.strip() and address:
                return ResolvedToken(
                    id=address.lower() if is_evm_address(address) else address,
                    contract_address=address,
                    network=map_network(network_part),
                    source=ResolutionSource.NETWORK_ADDRESS,
                )

        return await self._resolve_by_search(text, hint)

    async def _resolve_by_search(self, text: str, hint: str | None) -> ResolvedToken:
        cache_key = f"{clean_token_id(text)}@{hint or ''}"

        if self._cache:
            cached = await self._cache.get_token(cache_key)
            if cached:
                logger.debug(f"Identity cache hit for {text!r}")
                return cached

        try:
            token, complete = await self._search(text, hint)
        except Exception as e:
            logger.exception(f"Search resolution failed for {text!r}: {e}")
            token, complete = None, False

        if token is None:
            logger.info(f"Could not resolve {text!r}, continuing unresolved")
            return ResolvedToken(
                id=clean_token_id(text) or text,
                symbol=text.upper(),
                name=text,
                network=hint or DEFAULT_NETWORK,
                source=ResolutionSource.UNRESOLVED,
            )

        # A failed coin lookup leaves the address unknown; retry it next scan
        if self._cache and complete:
            await self._cache.put_token(cache_key, token)
        return token

    async def _search(self, text: str, hint: str | None) -> tuple[ResolvedToken | None, bool]:
        """
        Search by text and look up the chosen coin's contract address.

        Returns:
            (token or None, whether the coin lookup succeeded)
        """
        result = await self._market.search(text)
        if not isinstance(result, Ok) or not result.payload:
            return None, False

        hits: list[CoinSearchHit] = result.payload
        hit = match_by_priority(
            hits,
            text,
            text,
            get_symbol=lambda h: h.symbol,
            get_name=lambda h: h.name,
        ) or hits[0]

        address, network = None, hint or DEFAULT_NETWORK
        coin = await self._market.fetch_coin(hit.id)
        if isinstance(coin, Ok):
            address, network = pick_platform_address(coin.payload.platforms, hint)

        logger.info(f"Resolved {text!r} to {hit.id} ({network}, address={'yes' if address else 'no'})")
        token = ResolvedToken(
            id=hit.id,
            symbol=hit.symbol,
            name=hit.name,
            contract_address=address,
            network=network,
            source=ResolutionSource.SEARCH,
            coin_id=hit.id,
        )
        return token, isinstance(coin, Ok)
