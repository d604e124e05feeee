"""Provider clients for the external data sources."""

from tokenhealth.services.providers.base import ProviderClient, ProviderConfig
from tokenhealth.services.providers.code_activity import CodeActivityClient
from tokenhealth.services.providers.contract_explorer import ContractExplorerClient
from tokenhealth.services.providers.market_data import MarketDataClient
from tokenhealth.services.providers.onchain_pools import OnChainPoolsClient
from tokenhealth.services.providers.security_analyzer import SecurityAnalyzerClient
from tokenhealth.services.providers.social import SocialProfileClient
from tokenhealth.services.providers.tvl import TvlClient

__all__ = [
    "ProviderClient",
    "ProviderConfig",
    "MarketDataClient",
    "OnChainPoolsClient",
    "ContractExplorerClient",
    "SecurityAnalyzerClient",
    "TvlClient",
    "SocialProfileClient",
    "CodeActivityClient",
]
