"""
Custom exceptions for TokenHealth application.

Exception hierarchy:
    TokenHealthError (base)
    ├── ValidationError - Invalid user query
    ├── DataFetchError - Nothing computable could be fetched
    │   └── TokenNotFoundError - Unresolvable token with no market data
    └── CacheError - Key-value store failure (handled inside the cache layer)

Provider failures are NOT exceptions: provider clients return
ProviderResult values (see core.results). Only the conditions above
ever cross a service boundary.

Each exception carries a user-friendly message that can be shown to users,
and optionally a technical message for logging.
"""


class TokenHealthError(Exception):
    """
    Base exception for all TokenHealth errors.

    Attributes:
        message: User-friendly error message (can be shown to users)
        technical_message: Detailed message for logs (optional)
    """

    def __init__(
        self,
        message: str = "Something went wrong. Please try again later.",
        technical_message: str | None = None,
    ):
        self.message = message
        self.technical_message = technical_message or message
        super().__init__(self.technical_message)

    def __str__(self) -> str:
        return self.technical_message


class ValidationError(TokenHealthError):
    """
    Raised when the user query cannot be scanned at all.

    Examples:
        - Empty input
        - Input longer than any symbol, name or address
    """

    def __init__(
        self,
        message: str = "Please send a token symbol, name or contract address.",
        technical_message: str | None = None,
    ):
        super().__init__(message, technical_message)


class DataFetchError(TokenHealthError):
    """
    Raised when no usable data could be fetched for a scan.
    """

    def __init__(
        self,
        message: str = "Could not fetch token data. Please try again later.",
        technical_message: str | None = None,
    ):
        super().__init__(message, technical_message)


class TokenNotFoundError(DataFetchError):
    """
    Raised when nothing at all is computable for a query.

    This is the only fatal scan outcome: identifier resolution produced
    nothing, no cache entry exists, and the market-data call failed.
    """

    def __init__(
        self,
        message: str = "Token not found. Check the symbol or contract address.",
        technical_message: str | None = None,
    ):
        super().__init__(message, technical_message)


class CacheError(TokenHealthError):
    """
    Raised by key-value stores on read/write failure.

    TTLCache catches it: read failures become misses, write failures
    are logged and swallowed.
    """

    def __init__(
        self,
        message: str = "Cache unavailable.",
        technical_message: str | None = None,
    ):
        super().__init__(message, technical_message)
