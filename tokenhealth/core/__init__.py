"""
Core module - models, payloads, results, protocols, and exceptions.

This module contains the fundamental building blocks of the application:
- Data models (Pydantic)
- Provider payload shapes
- The tagged provider result type
- Protocol definitions (interfaces)
- Custom exceptions
"""

from tokenhealth.core.exceptions import (
    CacheError,
    DataFetchError,
    TokenHealthError,
    TokenNotFoundError,
    ValidationError,
)
from tokenhealth.core.models import (
    ALL_CATEGORIES,
    AuditStatus,
    CacheEntry,
    Category,
    CategoryScore,
    ConcentrationLevel,
    DataQuality,
    HealthMetrics,
    KnownHandles,
    ResolutionSource,
    ResolvedToken,
    ScanHistoryRecord,
    ScanRequest,
    TokenQuery,
)
from tokenhealth.core.protocols import (
    HistorySink,
    IdentityProvider,
    KeyValueStore,
    MarketDataSource,
)
from tokenhealth.core.results import Err, FailureKind, Ok, ProviderResult

__all__ = [
    # Exceptions
    "TokenHealthError",
    "ValidationError",
    "DataFetchError",
    "TokenNotFoundError",
    "CacheError",
    # Models
    "ALL_CATEGORIES",
    "AuditStatus",
    "CacheEntry",
    "Category",
    "CategoryScore",
    "ConcentrationLevel",
    "DataQuality",
    "HealthMetrics",
    "KnownHandles",
    "ResolutionSource",
    "ResolvedToken",
    "ScanHistoryRecord",
    "ScanRequest",
    "TokenQuery",
    # Results
    "Ok",
    "Err",
    "FailureKind",
    "ProviderResult",
    # Protocols
    "KeyValueStore",
    "IdentityProvider",
    "HistorySink",
    "MarketDataSource",
]
