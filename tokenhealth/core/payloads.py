"""
Typed payload shapes returned by provider clients.

Each provider client validates the raw JSON it receives into one of these
models at the client boundary. A payload that does not fit its model is a
LogicalError for that provider, never a crash further down the pipeline.

All numeric fields are optional: a missing value means "the provider did
not say", which the scoring engine treats as "contributes nothing".
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


# =============================================================================
# MarketData (CoinGecko)
# =============================================================================


class CoinSearchHit(BaseModel):
    """One result of a market-data text search."""

    id: str
    name: str = ""
    symbol: str = ""
    market_cap_rank: int | None = None


class CoinLinks(BaseModel):
    """Project links published by the market-data provider."""

    homepage: list[str] = Field(default_factory=list)
    repos_github: list[str] = Field(default_factory=list)
    twitter_screen_name: str | None = None
    telegram_channel_identifier: str | None = None


class MarketData(BaseModel):
    """
    Price, market and community/developer statistics for one coin.
    """

    id: str
    symbol: str = ""
    name: str = ""
    market_cap_rank: int | None = None

    current_price: float | None = None
    price_change_24h: float | None = None
    """24h price change, percent"""

    market_cap: float | None = None
    market_cap_change_24h: float | None = None
    """24h market cap change, percent"""

    total_volume: float | None = None
    """24h trading volume, USD"""

    # Community
    twitter_followers: int | None = None
    reddit_subscribers: int | None = None
    telegram_users: int | None = None

    # Developer
    commit_count_4_weeks: int | None = None
    stars: int | None = None
    forks: int | None = None
    pull_request_contributors: int | None = None

    platforms: dict[str, str] = Field(default_factory=dict)
    """Platform id -> contract address"""

    links: CoinLinks = Field(default_factory=CoinLinks)


# =============================================================================
# OnChainPools (GeckoTerminal)
# =============================================================================


class PoolSummary(BaseModel):
    """Entry of a token's pool list."""

    id: str
    """Provider pool id, '<network>_<address>'"""

    address: str
    name: str = ""
    reserve_in_usd: float | None = None


class LiquidityLock(BaseModel):
    """Liquidity lock state of a pool."""

    is_locked: bool = False
    locked_until: datetime | None = None
    duration_seconds: int | None = None


class PoolDetail(BaseModel):
    """Reserves, volume and lock information of the primary pool."""

    address: str
    network: str
    name: str = ""
    reserve_in_usd: float | None = None
    volume_24h: float | None = None
    tx_count_24h: int | None = None
    created_at: datetime | None = None
    liquidity_lock: LiquidityLock | None = None


# =============================================================================
# ContractExplorer (Etherscan)
# =============================================================================


class SourceAnalysis(BaseModel):
    """Capabilities detected in verified contract source."""

    ownership_renounced: bool = False
    can_mint: bool = False
    can_burn: bool = False
    has_freeze: bool = False
    is_multisig: bool = False
    is_proxy: bool = False


class HolderBalance(BaseModel):
    """A token holder and its raw (integer) balance."""

    address: str
    quantity: int = Field(ge=0)


class ContractInfo(BaseModel):
    """Verified source availability, holders and creator of a contract."""

    address: str
    verified: bool = False
    contract_name: str | None = None
    source_analysis: SourceAnalysis | None = None
    """None when the source is not verified"""

    holders: list[HolderBalance] = Field(default_factory=list)
    total_supply: int | None = None

    top_holders_bp: int | None = None
    """Top-10 holders share of supply in basis points (4250 == 42.50%)"""

    creator_address: str | None = None


# =============================================================================
# SecurityAnalyzer (GoPlus)
# =============================================================================


class ContractRiskLevel(str, Enum):
    """Overall contract risk derived from security flags."""

    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"
    UNKNOWN = "Unknown"


class SecurityReport(BaseModel):
    """Heuristic contract-risk flags."""

    ownership_renounced: bool | None = None
    can_mint: bool | None = None
    can_burn: bool | None = None
    has_blacklist: bool | None = None
    slippage_modifiable: bool | None = None
    is_honeypot: bool | None = None
    owner_can_change_balance: bool | None = None
    is_proxy: bool | None = None
    is_multisig: bool | None = None
    has_external_calls: bool | None = None
    transfer_pausable: bool | None = None
    is_selfdestructable: bool | None = None
    is_open_source: bool | None = None

    buy_tax: float | None = None
    """Percent"""

    sell_tax: float | None = None
    """Percent"""

    owner_address: str | None = None
    creator_address: str | None = None
    holder_count: int | None = None

    high_risk_count: int = 0
    moderate_risk_count: int = 0
    risk_level: ContractRiskLevel = ContractRiskLevel.UNKNOWN

    @property
    def has_freeze(self) -> bool | None:
        """Blacklist or pausable transfers both let someone freeze holders."""
        if self.has_blacklist is None and self.transfer_pausable is None:
            return None
        return bool(self.has_blacklist) or bool(self.transfer_pausable)


# =============================================================================
# TVLAggregator (DeFiLlama)
# =============================================================================


class TvlData(BaseModel):
    """Protocol TVL, its recent change and chain distribution."""

    slug: str
    name: str = ""
    category: str | None = None
    tvl: float | None = None
    tvl_change_1d: float | None = None
    """Percent"""

    tvl_change_7d: float | None = None
    """Percent"""

    chains: list[str] = Field(default_factory=list)
    chain_distribution: str = "N/A"
    history: list[float] = Field(default_factory=list)
    """Last 7 daily TVL points, oldest first"""


# =============================================================================
# SocialProfile (X / Twitter)
# =============================================================================


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class FollowerChange(BaseModel):
    """Follower growth against the previous observation."""

    trend: Trend = Trend.NEUTRAL
    value: int = 0
    percentage: float = 0.0


class SocialProfile(BaseModel):
    """Public profile statistics of the project's social account."""

    handle: str
    followers: int = Field(default=0, ge=0)
    following: int = Field(default=0, ge=0)
    tweet_count: int = Field(default=0, ge=0)
    verified: bool = False
    created_at: datetime | None = None
    follower_change: FollowerChange | None = None


# =============================================================================
# CodeActivity (GitHub)
# =============================================================================


class ActivityStatus(str, Enum):
    ACTIVE = "Active"
    STALE = "Stale"
    INACTIVE = "Inactive"


class CodeActivity(BaseModel):
    """Repository popularity and recent commit activity."""

    repo: str
    """'owner/name'"""

    url: str = ""
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    commit_count: int = 0
    """Commits in the last 30 days"""

    contributor_count: int = 0
    last_commit_at: datetime | None = None
    is_open_source: bool = False
    status: ActivityStatus = ActivityStatus.INACTIVE
    language: str | None = None
    license: str | None = None
