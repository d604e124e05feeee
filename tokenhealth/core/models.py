"""
Pydantic models for TokenHealth application.

Request, identity, score and output records used throughout the pipeline.
Models provide:
- Type safety
- Automatic validation
- JSON serialization/deserialization (camelCase on the wire)

Every record here is immutable once created (frozen models).
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from tokenhealth.core.payloads import SecurityReport, Trend


# =============================================================================
# Request / identity
# =============================================================================


class KnownHandles(BaseModel):
    """Handles the caller already knows, used to skip handle discovery."""

    social: str | None = None
    """X/Twitter screen name"""

    code_repo: str | None = None
    """GitHub 'owner/repo' or repository URL"""

    model_config = {"frozen": True}


class TokenQuery(BaseModel):
    """
    Raw user query.

    Created per request, never modified.
    """

    query: str
    network_hint: str | None = None
    known_handles: KnownHandles = Field(default_factory=KnownHandles)

    model_config = {"frozen": True}


class ScanRequest(TokenQuery):
    """Request from the UI collaborator."""

    force_refresh: bool = False
    """Skip the metrics cache read (the result is still written)"""


class ResolutionSource(str, Enum):
    """How the resolver arrived at the token identity."""

    ADDRESS = "address"
    NETWORK_ADDRESS = "network_address"
    SEARCH = "search"
    UNRESOLVED = "unresolved"


class ResolvedToken(BaseModel):
    """
    Best-effort canonical token identity.

    contract_address may be None: address-bound providers are then
    skipped, which narrows the scan but is not an error.
    """

    id: str
    """Canonical identifier (market-data coin id, or the address)"""

    symbol: str = ""
    name: str = ""
    contract_address: str | None = None
    network: str = "eth"
    source: ResolutionSource = ResolutionSource.UNRESOLVED

    coin_id: str | None = None
    """Market-data coin id when known (search hits)"""

    model_config = {"frozen": True}

    @property
    def is_unresolved(self) -> bool:
        return self.source is ResolutionSource.UNRESOLVED


# =============================================================================
# Scores
# =============================================================================


class Category(str, Enum):
    SECURITY = "security"
    LIQUIDITY = "liquidity"
    TOKENOMICS = "tokenomics"
    COMMUNITY = "community"
    DEVELOPMENT = "development"


ALL_CATEGORIES: frozenset[Category] = frozenset(Category)


class CategoryScore(BaseModel):
    """One category score, always within [0, 100]."""

    category: Category
    value: int = Field(ge=0, le=100)

    model_config = {"frozen": True}


class DataQuality(str, Enum):
    """
    Informational flag: 'complete' when a high-signal source (pool or TVL
    data) contributed. Never changes the score.
    """

    COMPLETE = "complete"
    PARTIAL = "partial"


class ConcentrationLevel(str, Enum):
    """Top-10 holder concentration bucket."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    UNKNOWN = "unknown"


class AuditStatus(str, Enum):
    VERIFIED = "Verified"
    UNVERIFIED = "Unverified"
    UNKNOWN = "Unknown"


# =============================================================================
# Output record
# =============================================================================


class HealthMetrics(BaseModel):
    """
    The scan output record.

    Every field is always present; unavailable values use an explicit
    placeholder ("N/A", "Unknown", 0 or None) rather than a missing key.
    Serialized with camelCase keys.
    """

    # Identity
    token_id: str
    name: str
    symbol: str
    contract_address: str | None = None
    network: str = "eth"

    # Market
    market_cap: str = "N/A"
    market_cap_value: float = 0.0
    market_cap_change_24h: float = 0.0
    current_price: float = 0.0
    price_change_24h: float = 0.0
    volume_24h: str = "N/A"
    volume_24h_value: float = 0.0

    # TVL / pool
    tvl: str = "N/A"
    tvl_value: float = 0.0
    tvl_change_24h: float = 0.0
    tvl_chains: str = "N/A"
    tvl_sparkline: list[float] = Field(default_factory=list)
    pool_address: str | None = None
    pool_age: str = "Unknown"
    tx_count_24h: int = 0

    # Liquidity lock
    liquidity_lock: str = "Unknown"
    liquidity_lock_days: int = 0

    # Holders
    top_holders_percentage: str = "N/A"
    top_holders_value: float = 0.0
    top_holders_trend: ConcentrationLevel = ConcentrationLevel.UNKNOWN

    # Contract
    audit_status: AuditStatus = AuditStatus.UNKNOWN
    ownership_renounced: str = "Unknown"
    creator_address: str | None = None
    security_flags: SecurityReport | None = None

    # Community
    social_followers: str = "N/A"
    social_followers_count: int = 0
    social_followers_change: float = 0.0
    social_followers_trend: Trend = Trend.NEUTRAL

    # Development
    code_activity: str = "Unknown"
    code_commits: int = 0
    code_stars: int = 0
    code_forks: int = 0
    code_contributors: int = 0
    last_commit_date: str | None = None

    # Scores
    categories: dict[Category, CategoryScore]
    health_score: int = Field(ge=0, le=100)
    data_quality: DataQuality = DataQuality.PARTIAL
    data_sources: list[str] = Field(default_factory=list)
    last_updated: int
    """Epoch milliseconds"""

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def category_values(self) -> dict[str, int]:
        """Plain {category: value} mapping, as stored in scan history."""
        return {cat.value: score.value for cat, score in self.categories.items()}


# =============================================================================
# Persistence records
# =============================================================================


class CacheEntry(BaseModel):
    """
    Stored cache record.

    Treated as a miss once now > expires_at.
    """

    key: str
    payload: Any
    computed_at: float
    expires_at: float

    model_config = {"frozen": True}

    def is_fresh(self, now: float) -> bool:
        return now <= self.expires_at


class ScanHistoryRecord(BaseModel):
    """One scan by an authenticated user, appended to the history sink."""

    user_id: str
    token_id: str
    symbol: str
    name: str
    health_score: int
    category_scores: dict[str, int]
    contract_address: str | None = None
    scanned_at: int = 0
    """Epoch milliseconds"""

    model_config = {"frozen": True}
