"""
Scoring inputs.

Flattens a ProviderBundle into one record of optional signals. Every
signal is None when its provider was skipped, failed, or did not say.
Scoring functions read only this record, so they never see a provider
result or an error.

Where two providers report the same signal, one canonical value is
chosen here so no signal is counted twice:

    ownership_renounced - security analyzer (owner is the zero/dead
                          address and ownership cannot be taken back),
                          else the explorer's source analysis
    can_mint, has_freeze - security analyzer, else source analysis
    is_open_source       - security analyzer, else explorer verification
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone

from tokenhealth.core.payloads import (
    ActivityStatus,
    CodeActivity,
    ContractInfo,
    ContractRiskLevel,
    MarketData,
    PoolDetail,
    SecurityReport,
    SocialProfile,
    TvlData,
    Trend,
)
from tokenhealth.core.results import payload_or_none

SECONDS_PER_DAY = 86_400
DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class ScoringInputs:
    """All signals the category scores consume. Absent means None."""

    # Market
    market_cap_rank: int | None = None
    market_cap: float | None = None
    volume_24h: float | None = None
    has_code_repo: bool | None = None

    # Pool
    pool_reserve_usd: float | None = None
    pool_tx_count_24h: int | None = None
    pool_age_days: int | None = None
    liquidity_locked: bool | None = None
    lock_days: float | None = None

    # TVL
    tvl: float | None = None
    tvl_change_7d: float | None = None
    chain_count: int | None = None

    # Contract capabilities (merged)
    ownership_renounced: bool | None = None
    can_mint: bool | None = None
    can_burn: bool | None = None
    has_freeze: bool | None = None
    is_multisig: bool | None = None
    is_open_source: bool | None = None
    top_holders_bp: int | None = None

    # Security analyzer only
    is_honeypot: bool | None = None
    owner_can_change_balance: bool | None = None
    is_selfdestructable: bool | None = None
    has_blacklist: bool | None = None
    slippage_modifiable: bool | None = None
    transfer_pausable: bool | None = None
    buy_tax: float | None = None
    sell_tax: float | None = None
    risk_level: ContractRiskLevel | None = None

    # Community
    followers: int | None = None
    social_verified: bool | None = None
    account_age_years: float | None = None
    tweet_count: int | None = None
    follower_trend: Trend | None = None
    follower_growth_pct: float | None = None
    reddit_subscribers: int | None = None
    telegram_users: int | None = None

    # Development
    has_code_activity: bool = False
    commit_count: int | None = None
    stars: int | None = None
    forks: int | None = None
    contributors: int | None = None
    code_open_source: bool | None = None
    activity_status: ActivityStatus | None = None

    # Data quality
    has_pool_data: bool = False
    has_tvl_data: bool = False


def _first_known(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def days_between(earlier: datetime, later: datetime) -> float:
    """Signed days from `earlier` to `later`; naive datetimes are UTC."""
    return (_aware(later) - _aware(earlier)).total_seconds() / SECONDS_PER_DAY


def lock_days(pool: PoolDetail | None, now: datetime) -> float | None:
    """Remaining (or total) lock duration of a pool in days."""
    if pool is None or pool.liquidity_lock is None or not pool.liquidity_lock.is_locked:
        return None
    lock = pool.liquidity_lock
    if lock.duration_seconds:
        return lock.duration_seconds / SECONDS_PER_DAY
    if lock.locked_until:
        return days_between(now, lock.locked_until)
    return None


def build_scoring_inputs(bundle, now: datetime | None = None) -> ScoringInputs:
    """
    Extract scoring signals from a ProviderBundle.

    Args:
        bundle: Provider results of one scan
        now: Reference time for ages and lock durations (UTC)

    Returns:
        ScoringInputs
    """
    now = now or datetime.now(timezone.utc)

    market: MarketData | None = payload_or_none(bundle.market)
    pool: PoolDetail | None = payload_or_none(bundle.pools)
    contract: ContractInfo | None = payload_or_none(bundle.contract)
    security: SecurityReport | None = payload_or_none(bundle.security)
    tvl: TvlData | None = payload_or_none(bundle.tvl)
    social: SocialProfile | None = payload_or_none(bundle.social)
    code: CodeActivity | None = payload_or_none(bundle.code)

    source = contract.source_analysis if contract else None

    values: dict = {}

    if market:
        values.update(
            market_cap_rank=market.market_cap_rank,
            market_cap=market.market_cap,
            volume_24h=market.total_volume,
            has_code_repo=bool(market.links.repos_github),
            reddit_subscribers=market.reddit_subscribers,
            telegram_users=market.telegram_users,
            followers=market.twitter_followers,
        )

    if pool:
        values.update(
            has_pool_data=True,
            pool_reserve_usd=pool.reserve_in_usd,
            pool_tx_count_24h=pool.tx_count_24h,
            pool_age_days=math.ceil(days_between(pool.created_at, now)) if pool.created_at else None,
            liquidity_locked=pool.liquidity_lock.is_locked if pool.liquidity_lock else None,
            lock_days=lock_days(pool, now),
        )

    if tvl:
        values.update(
            has_tvl_data=True,
            tvl=tvl.tvl,
            tvl_change_7d=tvl.tvl_change_7d,
            chain_count=len(tvl.chains) if tvl.chains else None,
        )

    values.update(
        ownership_renounced=_first_known(
            security.ownership_renounced if security else None,
            source.ownership_renounced if source else None,
        ),
        can_mint=_first_known(
            security.can_mint if security else None,
            source.can_mint if source else None,
        ),
        has_freeze=_first_known(
            security.has_freeze if security else None,
            source.has_freeze if source else None,
        ),
        can_burn=source.can_burn if source else None,
        is_multisig=_first_known(
            security.is_multisig if security else None,
            source.is_multisig if source else None,
        ),
        is_open_source=_first_known(
            security.is_open_source if security else None,
            contract.verified if contract else None,
        ),
        top_holders_bp=contract.top_holders_bp if contract else None,
    )

    if security:
        values.update(
            is_honeypot=security.is_honeypot,
            owner_can_change_balance=security.owner_can_change_balance,
            is_selfdestructable=security.is_selfdestructable,
            has_blacklist=security.has_blacklist,
            slippage_modifiable=security.slippage_modifiable,
            transfer_pausable=security.transfer_pausable,
            buy_tax=security.buy_tax,
            sell_tax=security.sell_tax,
            risk_level=security.risk_level,
        )

    if social:
        change = social.follower_change
        values.update(
            followers=social.followers,
            social_verified=social.verified,
            account_age_years=(
                days_between(social.created_at, now) / DAYS_PER_YEAR if social.created_at else None
            ),
            tweet_count=social.tweet_count,
            follower_trend=change.trend if change else None,
            follower_growth_pct=change.percentage if change else None,
        )

    if code:
        values.update(
            has_code_activity=True,
            commit_count=code.commit_count,
            stars=code.stars,
            forks=code.forks,
            contributors=code.contributor_count,
            code_open_source=code.is_open_source,
            activity_status=code.status,
        )
    elif market:
        values.update(
            commit_count=market.commit_count_4_weeks,
            stars=market.stars,
            forks=market.forks,
            contributors=market.pull_request_contributors,
        )

    return ScoringInputs(**values)
