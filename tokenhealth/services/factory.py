"""
Service factory for dependency injection.

Creates and configures all services based on application settings.
Settings are turned into one ProviderConfig per client here, so no
client reads global configuration.

This is the single point of service creation - all services
should be created through this factory.
"""

import logging

from tokenhealth.config.settings import Settings
from tokenhealth.core.protocols import HistorySink, KeyValueStore
from tokenhealth.services.aggregation import (
    AggregationOrchestrator,
    ProviderClients,
    ReducedAggregationOrchestrator,
)
from tokenhealth.services.assembler import ResultAssembler
from tokenhealth.services.cache import IdentityCache, InMemoryKeyValueStore, MetricsCache, SingleFlight
from tokenhealth.services.history import InMemoryHistorySink
from tokenhealth.services.providers import (
    CodeActivityClient,
    ContractExplorerClient,
    MarketDataClient,
    OnChainPoolsClient,
    ProviderConfig,
    SecurityAnalyzerClient,
    SocialProfileClient,
    TvlClient,
)
from tokenhealth.services.resolver import IdentifierResolver
from tokenhealth.services.scanner import TokenScanner
from tokenhealth.services.scoring import ScoringService

logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    Factory for creating application services.

    Shared state (key-value store, caches, history sink, in-flight
    registry) is created once per factory and reused by every service
    built from it.

    Usage:
        factory = ServiceFactory(settings)
        scanner = factory.create_scanner()
    """

    def __init__(
        self,
        settings: Settings,
        store: KeyValueStore | None = None,
        history: HistorySink | None = None,
    ):
        """
        Initialize factory with application settings.

        Args:
            settings: Application configuration
            store: Key-value store backing both caches (in-memory by default)
            history: Scan history sink (in-memory by default)
        """
        self._settings = settings
        self._store = store or InMemoryKeyValueStore()
        self._history = history or InMemoryHistorySink()
        self._identity_cache = IdentityCache(self._store, ttl_seconds=settings.identity_ttl_seconds)
        self._metrics_cache = MetricsCache(self._store, ttl_seconds=settings.metrics_ttl_seconds)
        self._single_flight = SingleFlight()
        self._clients: ProviderClients | None = None

        logger.info(
            f"ServiceFactory initialized ({settings.environment}, "
            f"deadline={settings.aggregation_deadline}s, retries={settings.max_retries})"
        )

    @property
    def history(self) -> HistorySink:
        return self._history

    @property
    def metrics_cache(self) -> MetricsCache:
        return self._metrics_cache

    @property
    def identity_cache(self) -> IdentityCache:
        return self._identity_cache

    def provider_config(self, base_url: str, timeout: float, api_key: str = "") -> ProviderConfig:
        """Build a client config with the shared retry policy."""
        return ProviderConfig(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=self._settings.max_retries,
            retry_backoff=self._settings.retry_backoff,
            backoff_multiplier=self._settings.backoff_multiplier,
        )

    def create_provider_clients(self) -> ProviderClients:
        """
        Create the provider client roster.

        Returns:
            ProviderClients (created once, then reused)
        """
        if self._clients is not None:
            return self._clients

        s = self._settings
        if not s.twitter_bearer_token:
            logger.warning("TWITTER_BEARER_TOKEN not set, social profile lookups disabled")

        self._clients = ProviderClients(
            market=MarketDataClient(
                self.provider_config(s.coingecko_base_url, s.market_data_timeout, s.coingecko_api_key),
                search_timeout=s.search_timeout,
            ),
            pools=OnChainPoolsClient(self.provider_config(s.geckoterminal_base_url, s.pools_timeout)),
            explorer=ContractExplorerClient(
                self.provider_config(s.etherscan_base_url, s.explorer_timeout, s.etherscan_api_key)
            ),
            security=SecurityAnalyzerClient(self.provider_config(s.goplus_base_url, s.security_timeout)),
            tvl=TvlClient(
                self.provider_config(s.defillama_base_url, s.tvl_timeout),
                cache=self._identity_cache,
            ),
            social=SocialProfileClient(
                self.provider_config(s.twitter_base_url, s.social_timeout, s.twitter_bearer_token),
                cache=self._identity_cache,
            ),
            code=CodeActivityClient(self.provider_config(s.github_base_url, s.code_timeout, s.github_token)),
        )
        logger.debug("Created provider clients")
        return self._clients

    def create_resolver(self) -> IdentifierResolver:
        return IdentifierResolver(self.create_provider_clients().market, cache=self._identity_cache)

    def create_orchestrator(self) -> AggregationOrchestrator:
        return AggregationOrchestrator(
            self.create_provider_clients(),
            deadline=self._settings.aggregation_deadline,
        )

    def create_reduced_orchestrator(self) -> ReducedAggregationOrchestrator:
        return ReducedAggregationOrchestrator(
            self.create_provider_clients(),
            deadline=self._settings.aggregation_deadline,
        )

    def create_scoring_service(self) -> ScoringService:
        """Scoring uses the same weights everywhere."""
        return ScoringService()

    def create_assembler(self) -> ResultAssembler:
        return ResultAssembler(metrics_cache=self._metrics_cache, history=self._history)

    def create_scanner(self) -> TokenScanner:
        """
        Create the token scanner.

        This is the primary service used by handlers.
        Creates all dependencies automatically.

        Returns:
            TokenScanner ready for use
        """
        logger.info("Creating TokenScanner with all dependencies")

        return TokenScanner(
            resolver=self.create_resolver(),
            orchestrator=self.create_orchestrator(),
            scoring=self.create_scoring_service(),
            assembler=self.create_assembler(),
            metrics_cache=self._metrics_cache,
            fallback=self.create_reduced_orchestrator(),
            single_flight=self._single_flight,
        )
