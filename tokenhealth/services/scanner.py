"""
Token scanner.

Pipeline entry point. Coordinates the scan workflow without containing
business logic:

1. Metrics cache read (skipped on force_refresh); a fresh hit returns
   the stored report verbatim
2. Single-flight compute per cache key:
   resolve -> aggregate (reduced fallback) -> fatal check -> score ->
   assemble -> cache write
3. History record for authenticated callers
"""

import logging

from tokenhealth.core.exceptions import DataFetchError, TokenNotFoundError, ValidationError
from tokenhealth.core.models import HealthMetrics, KnownHandles, ResolvedToken, ScanRequest
from tokenhealth.core.protocols import IdentityProvider
from tokenhealth.core.results import Ok
from tokenhealth.services.aggregation import AggregationOrchestrator, ProviderBundle
from tokenhealth.services.assembler import ResultAssembler
from tokenhealth.services.cache import MetricsCache, SingleFlight
from tokenhealth.services.resolver import IdentifierResolver, map_network, normalize_query
from tokenhealth.services.scoring import ScoringService, build_scoring_inputs
from tokenhealth.utils.validators import validate_query

logger = logging.getLogger(__name__)


def metrics_cache_key(request: ScanRequest) -> str:
    """
    Metrics cache key: the normalized query as typed, plus the network hint.

    Different phrasings of one token ('PENDLE', 'pendle finance') are
    cached separately.

    >>> metrics_cache_key(ScanRequest(query=" $Pendle "))
    'pendle'
    """
    key = normalize_query(request.query).lower()
    if request.network_hint:
        key = f"{key}@{map_network(request.network_hint)}"
    return key


class TokenScanner:
    """
    Orchestrates one token scan.

    Usage:
        scanner = factory.create_scanner()
        metrics = await scanner.scan(ScanRequest(query="pendle"), identity)
    """

    def __init__(
        self,
        resolver: IdentifierResolver,
        orchestrator: AggregationOrchestrator,
        scoring: ScoringService,
        assembler: ResultAssembler,
        metrics_cache: MetricsCache | None = None,
        fallback: AggregationOrchestrator | None = None,
        single_flight: SingleFlight | None = None,
    ):
        """
        Args:
            resolver: Query -> ResolvedToken
            orchestrator: Primary provider fan-out
            scoring: Category and composite scores
            assembler: HealthMetrics construction, cache write and history
            metrics_cache: Read side of the metrics cache
            fallback: Reduced fan-out used when the primary path fails
            single_flight: In-flight registry shared by concurrent scans
        """
        self._resolver = resolver
        self._orchestrator = orchestrator
        self._scoring = scoring
        self._assembler = assembler
        self._metrics_cache = metrics_cache
        self._fallback = fallback
        self._single_flight = single_flight or SingleFlight()

    async def scan(self, request: ScanRequest, identity: IdentityProvider | None = None) -> HealthMetrics:
        """
        Produce a health report for a query.

        Args:
            request: Query, hints and refresh flag
            identity: Authenticated caller, if any

        Returns:
            HealthMetrics (from cache or freshly computed)

        Raises:
            ValidationError: Query is empty or too long
            TokenNotFoundError: Nothing at all is computable
            DataFetchError: Both aggregation paths crashed
        """
        is_valid, error = validate_query(request.query)
        if not is_valid:
            raise ValidationError(technical_message=f"Invalid query: {error}")

        key = metrics_cache_key(request)

        if not request.force_refresh and self._metrics_cache:
            cached = await self._metrics_cache.get_metrics(key)
            if cached:
                logger.info(f"Metrics cache hit for {key!r}")
                return cached

        logger.info(f"Starting scan for {key!r} (force_refresh={request.force_refresh})")
        metrics = await self._single_flight.run(key, lambda: self._compute(request, key))

        user_id = identity.current_user_id() if identity else None
        await self._assembler.record_history(user_id, metrics)

        return metrics

    async def _compute(self, request: ScanRequest, key: str) -> HealthMetrics:
        # Step 1: Resolve identity
        token = await self._resolver.resolve(request)
        logger.debug(f"Resolved {key!r}: id={token.id} network={token.network} source={token.source.value}")

        # Step 2: Fetch provider data
        bundle = await self._aggregate(token, request.known_handles)

        # Step 3: Nothing computable
        if token.is_unresolved and not isinstance(bundle.market, Ok):
            raise TokenNotFoundError(
                technical_message=f"Unresolved query {key!r} and market data failed: {bundle.market}"
            )

        # Step 4: Score and assemble
        scorecard = self._scoring.score(build_scoring_inputs(bundle))
        metrics = self._assembler.assemble(token, bundle, scorecard)

        # Step 5: Cache write (best-effort)
        await self._assembler.persist(key, metrics)

        logger.info(f"Scan complete for {metrics.symbol}: health={metrics.health_score}")
        return metrics

    async def _aggregate(self, token: ResolvedToken, handles: KnownHandles) -> ProviderBundle:
        """Primary fan-out, with the reduced path when it fails outright."""
        bundle: ProviderBundle | None = None
        try:
            bundle = await self._orchestrator.aggregate(token, handles)
        except Exception as e:
            logger.exception(f"Primary aggregation crashed for {token.id}: {e}")

        if bundle is not None and not bundle.all_transport_failures:
            return bundle

        if self._fallback is None:
            if bundle is None:
                raise DataFetchError(technical_message=f"Aggregation failed for {token.id}")
            return bundle

        logger.warning(f"Primary aggregation unavailable for {token.id}, using reduced path")
        try:
            return await self._fallback.aggregate(token, handles)
        except Exception as e:
            logger.exception(f"Reduced aggregation crashed for {token.id}: {e}")
            raise DataFetchError(
                technical_message=f"Both aggregation paths failed for {token.id}: {type(e).__name__}: {e}"
            ) from e
