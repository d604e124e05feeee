"""
Result assembler.

Merges the resolved identity, provider results and scores into one
immutable HealthMetrics record, writes it to the metrics cache and, for
authenticated callers, appends it to the scan history.

Every field is always filled: a value no provider supplied gets its
placeholder ("N/A", "Unknown", 0 or None).
"""

import logging
import math
import time
from collections.abc import Callable
from datetime import datetime, timezone

from tokenhealth.core.models import (
    AuditStatus,
    ConcentrationLevel,
    HealthMetrics,
    ResolvedToken,
    ScanHistoryRecord,
)
from tokenhealth.core.payloads import (
    CodeActivity,
    ContractInfo,
    MarketData,
    PoolDetail,
    SecurityReport,
    SocialProfile,
    Trend,
    TvlData,
)
from tokenhealth.core.protocols import HistorySink
from tokenhealth.core.results import payload_or_none
from tokenhealth.services.aggregation import ProviderBundle
from tokenhealth.services.cache import MetricsCache
from tokenhealth.services.scoring import ScoreCard
from tokenhealth.services.scoring.inputs import days_between, lock_days
from tokenhealth.utils.formatters import format_basis_points, format_currency, format_days, format_number

logger = logging.getLogger(__name__)

# Top-10 concentration bands, basis points
LOW_CONCENTRATION_BP = 3000
HIGH_CONCENTRATION_BP = 6000


def concentration_level(bp: int | None) -> ConcentrationLevel:
    if bp is None:
        return ConcentrationLevel.UNKNOWN
    if bp < LOW_CONCENTRATION_BP:
        return ConcentrationLevel.LOW
    if bp <= HIGH_CONCENTRATION_BP:
        return ConcentrationLevel.MODERATE
    return ConcentrationLevel.HIGH


def describe_lock(pool: PoolDetail | None, now: datetime) -> tuple[str, int]:
    """
    Liquidity lock as display text and whole days.

    Returns:
        ("Not locked" | "Expired" | "Locked" | "N days" | "Unknown", days)
    """
    if pool is None or pool.liquidity_lock is None:
        return "Unknown", 0
    if not pool.liquidity_lock.is_locked:
        return "Not locked", 0

    days = lock_days(pool, now)
    if days is None:
        return "Locked", 0
    if days <= 0:
        return "Expired", 0

    whole = math.ceil(days)
    return format_days(whole), whole


def audit_status(security: SecurityReport | None) -> AuditStatus:
    """Open-source status as reported by the security analyzer."""
    if security is None or security.is_open_source is None:
        return AuditStatus.UNKNOWN
    return AuditStatus.VERIFIED if security.is_open_source else AuditStatus.UNVERIFIED


def _yes_no(flag: bool | None) -> str:
    if flag is None:
        return "Unknown"
    return "Yes" if flag else "No"


class ResultAssembler:
    """
    Builds, caches and records HealthMetrics.

    Usage:
        assembler = ResultAssembler(metrics_cache, history_sink)
        metrics = assembler.assemble(token, bundle, scorecard)
        await assembler.persist(key, metrics)
    """

    def __init__(
        self,
        metrics_cache: MetricsCache | None = None,
        history: HistorySink | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            metrics_cache: Where computed reports are written
            history: Scan history sink for authenticated callers
            clock: Returns current time in epoch seconds
        """
        self._metrics_cache = metrics_cache
        self._history = history
        self._clock = clock

    def assemble(self, token: ResolvedToken, bundle: ProviderBundle, scorecard: ScoreCard) -> HealthMetrics:
        """
        Merge one scan into a HealthMetrics record.

        Args:
            token: Resolved identity
            bundle: Provider results
            scorecard: Scores computed from the same bundle

        Returns:
            Complete, immutable HealthMetrics
        """
        now_ts = self._clock()
        now = datetime.fromtimestamp(now_ts, tz=timezone.utc)

        market: MarketData | None = payload_or_none(bundle.market)
        pool: PoolDetail | None = payload_or_none(bundle.pools)
        contract: ContractInfo | None = payload_or_none(bundle.contract)
        security: SecurityReport | None = payload_or_none(bundle.security)
        tvl: TvlData | None = payload_or_none(bundle.tvl)
        social: SocialProfile | None = payload_or_none(bundle.social)
        code: CodeActivity | None = payload_or_none(bundle.code)

        fields: dict = {
            "token_id": token.id,
            "name": (market.name if market and market.name else token.name) or token.id,
            "symbol": ((market.symbol if market and market.symbol else token.symbol) or token.id).upper(),
            "contract_address": token.contract_address,
            "network": token.network,
        }

        fields.update(self._market_fields(market))
        fields.update(self._liquidity_fields(pool, tvl, now))
        fields.update(self._contract_fields(contract, security))
        fields.update(self._community_fields(market, social))
        fields.update(self._development_fields(market, code))

        fields.update(
            categories=scorecard.categories,
            health_score=scorecard.health_score,
            data_quality=scorecard.data_quality,
            data_sources=bundle.succeeded(),
            last_updated=int(now_ts * 1000),
        )

        metrics = HealthMetrics(**fields)
        logger.info(
            f"Assembled {metrics.symbol}: health={metrics.health_score} "
            f"quality={metrics.data_quality.value} sources={metrics.data_sources}"
        )
        return metrics

    def _market_fields(self, market: MarketData | None) -> dict:
        if market is None:
            return {}
        fields: dict = {
            "current_price": market.current_price or 0.0,
            "price_change_24h": market.price_change_24h or 0.0,
            "market_cap_change_24h": market.market_cap_change_24h or 0.0,
        }
        if market.market_cap:
            fields.update(market_cap=format_currency(market.market_cap), market_cap_value=market.market_cap)
        if market.total_volume:
            fields.update(volume_24h=format_currency(market.total_volume), volume_24h_value=market.total_volume)
        return fields

    def _liquidity_fields(self, pool: PoolDetail | None, tvl: TvlData | None, now: datetime) -> dict:
        fields: dict = {}

        if pool:
            fields.update(pool_address=pool.address, tx_count_24h=pool.tx_count_24h or 0)
            if pool.created_at:
                age = math.ceil(days_between(pool.created_at, now))
                fields["pool_age"] = format_days(max(age, 0))
            if pool.reserve_in_usd:
                # Pool reserve stands in for TVL until protocol TVL is known
                fields.update(tvl=format_currency(pool.reserve_in_usd), tvl_value=pool.reserve_in_usd)

        lock_text, lock_whole_days = describe_lock(pool, now)
        fields.update(liquidity_lock=lock_text, liquidity_lock_days=lock_whole_days)

        if tvl and tvl.tvl:
            fields.update(
                tvl=format_currency(tvl.tvl),
                tvl_value=tvl.tvl,
                tvl_change_24h=tvl.tvl_change_1d or 0.0,
                tvl_chains=tvl.chain_distribution,
                tvl_sparkline=tvl.history,
            )

        return fields

    def _contract_fields(self, contract: ContractInfo | None, security: SecurityReport | None) -> dict:
        bp = contract.top_holders_bp if contract else None

        renounced = security.ownership_renounced if security else None
        if renounced is None and contract and contract.source_analysis:
            renounced = contract.source_analysis.ownership_renounced

        fields: dict = {
            "top_holders_trend": concentration_level(bp),
            "audit_status": audit_status(security),
            "ownership_renounced": _yes_no(renounced),
            "creator_address": (contract.creator_address if contract else None)
            or (security.creator_address if security else None),
            "security_flags": security,
        }
        if bp is not None:
            fields.update(top_holders_percentage=format_basis_points(bp), top_holders_value=bp / 100)
        return fields

    def _community_fields(self, market: MarketData | None, social: SocialProfile | None) -> dict:
        followers = social.followers if social else (market.twitter_followers if market else None)
        fields: dict = {}
        if followers is not None:
            fields.update(social_followers=format_number(followers), social_followers_count=followers)
        if social and social.follower_change:
            fields.update(
                social_followers_change=social.follower_change.percentage,
                social_followers_trend=social.follower_change.trend,
            )
        else:
            fields["social_followers_trend"] = Trend.NEUTRAL
        return fields

    def _development_fields(self, market: MarketData | None, code: CodeActivity | None) -> dict:
        if code:
            return {
                "code_activity": code.status.value,
                "code_commits": code.commit_count,
                "code_stars": code.stars,
                "code_forks": code.forks,
                "code_contributors": code.contributor_count,
                "last_commit_date": code.last_commit_at.date().isoformat() if code.last_commit_at else None,
            }
        if market:
            return {
                "code_commits": market.commit_count_4_weeks or 0,
                "code_stars": market.stars or 0,
                "code_forks": market.forks or 0,
                "code_contributors": market.pull_request_contributors or 0,
            }
        return {}

    async def persist(self, key: str, metrics: HealthMetrics) -> None:
        """Write metrics to the cache. Best-effort."""
        if self._metrics_cache is None:
            return
        await self._metrics_cache.put_metrics(key, metrics)
        logger.debug(f"Cached metrics under {key!r}")

    async def record_history(self, user_id: str | None, metrics: HealthMetrics) -> None:
        """
        Append a scan to the history sink. Best-effort.

        Nothing is recorded for anonymous callers.
        """
        if not user_id or self._history is None:
            return

        record = ScanHistoryRecord(
            user_id=user_id,
            token_id=metrics.token_id,
            symbol=metrics.symbol,
            name=metrics.name,
            health_score=metrics.health_score,
            category_scores=metrics.category_values(),
            contract_address=metrics.contract_address,
            scanned_at=int(self._clock() * 1000),
        )

        try:
            await self._history.append(record)
        except Exception as e:
            logger.warning(f"History write failed for user {user_id}: {type(e).__name__}: {e}")
