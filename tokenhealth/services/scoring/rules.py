"""
Category score rules.

Five pure, total functions over ScoringInputs plus the composite weighting.
Each starts from a base, adds tiered bonuses and penalties for the signals
that are present (an absent signal contributes nothing) and clamps the
result to [0, 100].

Tier tables are (threshold, points) pairs checked best first; the first
threshold exceeded wins.
"""

from tokenhealth.core.models import Category
from tokenhealth.core.payloads import ActivityStatus, ContractRiskLevel, Trend
from tokenhealth.services.scoring.inputs import ScoringInputs

SCORE_MIN = 0
SCORE_MAX = 100

SECURITY_BASE = 50
LIQUIDITY_BASE = 50
TOKENOMICS_BASE = 65
COMMUNITY_BASE = 50
DEVELOPMENT_BASE = 50

# Integer percent, must sum to 100
CATEGORY_WEIGHTS: dict[Category, int] = {
    Category.SECURITY: 25,
    Category.LIQUIDITY: 25,
    Category.TOKENOMICS: 20,
    Category.COMMUNITY: 15,
    Category.DEVELOPMENT: 15,
}

HIGH_RISK_CAP = 30
LOW_RISK_FLOOR = 60
HONEYPOT_TOKENOMICS_CAP = 20

# Security
RANK_TIERS = ((10, 20), (100, 15), (1000, 10))  # rank <= threshold
LOCK_DURATION_TIERS = ((365, 5), (180, 3))

# Liquidity
VOLUME_RATIO_TIERS = ((0.3, 30), (0.1, 20), (0.05, 10))
VOLUME_TIERS = ((10_000_000, 20), (1_000_000, 15), (100_000, 10))
RESERVE_TIERS = ((1_000_000, 10), (100_000, 5))
TX_COUNT_TIERS = ((1000, 10), (100, 5))
POOL_AGE_TIERS = ((365, 10), (180, 8), (90, 5), (30, 2))
TVL_TIERS = ((100_000_000, 20), (10_000_000, 15), (1_000_000, 10))
CHAIN_TIERS = ((3, 10), (1, 5))

# Tokenomics, top-10 holders in basis points
HOLDERS_GOOD_TIERS = ((3000, 15), (5000, 5))  # bp < threshold
HOLDERS_BAD_TIERS = ((8000, -15), (6000, -5))  # bp > threshold
BUY_TAX_TIERS = ((10, -10), (5, -5))
SELL_TAX_TIERS = ((10, -15), (5, -10))

# Community
FOLLOWER_TIERS = ((1_000_000, 20), (100_000, 15), (10_000, 10), (1000, 5))
ACCOUNT_AGE_TIERS = ((3, 10), (1, 5))
TWEET_TIERS = ((5000, 10), (1000, 5))
GROWTH_TIERS = ((10, 10), (5, 5))
MEMBER_TIERS = ((100_000, 10), (10_000, 7), (1000, 5))

# Development
COMMIT_TIERS = ((100, 20), (50, 15), (20, 10), (0, 5))
STAR_TIERS = ((5000, 15), (1000, 10), (100, 5))
FORK_TIERS = ((1000, 10), (100, 7), (10, 3))
MARKET_FORK_TIERS = ((1000, 15), (100, 10), (10, 5))
CONTRIBUTOR_TIERS = ((50, 10), (10, 5), (1, 2))


def clamp(value: int) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def tier_points(value: float | None, tiers: tuple[tuple[float, int], ...]) -> int:
    """Points of the first tier whose threshold `value` exceeds."""
    if value is None:
        return 0
    for threshold, points in tiers:
        if value > threshold:
            return points
    return 0


def flag_points(flag: bool | None, if_true: int, if_false: int = 0) -> int:
    if flag is None:
        return 0
    return if_true if flag else if_false


# =============================================================================
# Security
# =============================================================================


def security_points(inputs: ScoringInputs) -> int:
    """
    Security score before the risk-level override and clamping.

    Exposed on its own so the effect of single signals can be compared.
    """
    points = SECURITY_BASE

    if inputs.market_cap_rank is not None:
        for threshold, bonus in RANK_TIERS:
            if inputs.market_cap_rank <= threshold:
                points += bonus
                break

    if inputs.has_code_repo:
        points += 5
    if inputs.market_cap:
        points += 5

    if inputs.liquidity_locked is not None:
        if inputs.liquidity_locked:
            points += 5 + tier_points(inputs.lock_days, LOCK_DURATION_TIERS)
        else:
            points -= 5

    points += flag_points(inputs.ownership_renounced, 15, -10)
    points += flag_points(inputs.can_mint, -5, 10)
    points += flag_points(inputs.has_freeze, -2, 5)
    points += flag_points(inputs.is_multisig, 10)

    points += flag_points(inputs.is_honeypot, -40)
    points += flag_points(inputs.owner_can_change_balance, -20)
    points += flag_points(inputs.is_selfdestructable, -15)
    points += flag_points(inputs.has_blacklist, -5)
    points += flag_points(inputs.slippage_modifiable, -5)
    points += flag_points(inputs.transfer_pausable, -5)

    points += flag_points(inputs.is_open_source, 10, -10)

    return points


def security_score(inputs: ScoringInputs) -> int:
    """
    Contract and project security, base 50.

    A High risk level caps the score at 30, a Low one floors it at 60.
    """
    points = security_points(inputs)

    if inputs.risk_level is ContractRiskLevel.HIGH:
        points = min(points, HIGH_RISK_CAP)
    elif inputs.risk_level is ContractRiskLevel.LOW:
        points = max(points, LOW_RISK_FLOOR)

    return clamp(points)


# =============================================================================
# Liquidity
# =============================================================================


def liquidity_score(inputs: ScoringInputs) -> int:
    """Trading depth and activity, base 50."""
    points = LIQUIDITY_BASE

    if inputs.market_cap and inputs.volume_24h is not None:
        points += tier_points(inputs.volume_24h / inputs.market_cap, VOLUME_RATIO_TIERS)
    points += tier_points(inputs.volume_24h, VOLUME_TIERS)

    points += tier_points(inputs.pool_reserve_usd, RESERVE_TIERS)
    points += tier_points(inputs.pool_tx_count_24h, TX_COUNT_TIERS)
    points += tier_points(inputs.pool_age_days, POOL_AGE_TIERS)

    points += tier_points(inputs.tvl, TVL_TIERS)
    if inputs.tvl_change_7d is not None:
        if inputs.tvl_change_7d > 10:
            points += 10
        elif inputs.tvl_change_7d > 0:
            points += 5
        elif inputs.tvl_change_7d < -20:
            points -= 10
    points += tier_points(inputs.chain_count, CHAIN_TIERS)

    return clamp(points)


# =============================================================================
# Tokenomics
# =============================================================================


def tokenomics_score(inputs: ScoringInputs) -> int:
    """Supply mechanics, holder concentration and taxes, base 65."""
    points = TOKENOMICS_BASE

    points += flag_points(inputs.can_burn, 10)
    points += flag_points(inputs.can_mint, -10)

    bp = inputs.top_holders_bp
    if bp is not None:
        for threshold, delta in HOLDERS_GOOD_TIERS:
            if bp < threshold:
                points += delta
                break
        else:
            points += tier_points(bp, HOLDERS_BAD_TIERS)

    points += tier_points(inputs.buy_tax, BUY_TAX_TIERS)
    points += tier_points(inputs.sell_tax, SELL_TAX_TIERS)

    if inputs.is_honeypot:
        points = min(points, HONEYPOT_TOKENOMICS_CAP)

    return clamp(points)


# =============================================================================
# Community
# =============================================================================


def community_score(inputs: ScoringInputs) -> int:
    """Social reach and momentum, base 50."""
    points = COMMUNITY_BASE

    points += tier_points(inputs.followers, FOLLOWER_TIERS)
    points += flag_points(inputs.social_verified, 10)
    points += tier_points(inputs.account_age_years, ACCOUNT_AGE_TIERS)
    points += tier_points(inputs.tweet_count, TWEET_TIERS)

    if inputs.follower_trend is Trend.UP:
        points += tier_points(inputs.follower_growth_pct, GROWTH_TIERS)

    points += tier_points(inputs.reddit_subscribers, MEMBER_TIERS)
    points += tier_points(inputs.telegram_users, MEMBER_TIERS)

    return clamp(points)


# =============================================================================
# Development
# =============================================================================


def development_score(inputs: ScoringInputs) -> int:
    """
    Code activity, base 50.

    Uses repository activity when present, else the market-data developer
    statistics (which weight forks higher and carry no status).
    """
    points = DEVELOPMENT_BASE

    points += tier_points(inputs.commit_count, COMMIT_TIERS)
    points += tier_points(inputs.stars, STAR_TIERS)
    points += tier_points(inputs.contributors, CONTRIBUTOR_TIERS)

    if inputs.has_code_activity:
        points += tier_points(inputs.forks, FORK_TIERS)
        points += flag_points(inputs.code_open_source, 10)
        if inputs.activity_status is ActivityStatus.ACTIVE:
            points += 10
        elif inputs.activity_status is ActivityStatus.STALE:
            points += 5
    else:
        points += tier_points(inputs.forks, MARKET_FORK_TIERS)

    return clamp(points)


# =============================================================================
# Composite
# =============================================================================


def composite_score(scores: dict[Category, int], weights: dict[Category, int] = CATEGORY_WEIGHTS) -> int:
    """
    Weighted composite with integer-percent weights, rounded half up.

    >>> composite_score({c: 50 for c in Category})
    50
    """
    assert sum(weights.values()) == 100, "category weights must sum to 100"

    total = sum(weights[category] * scores[category] for category in weights)
    return clamp((total + 50) // 100)
