"""Message templates."""

from tokenhealth.templates.messages import (
    ERROR_GENERIC,
    ERROR_NOT_FOUND,
    ERROR_TRY_LATER,
    HELP,
    INVALID_QUERY,
    NO_HISTORY,
    REFRESH_USAGE,
    SCANNING,
    WELCOME,
)

__all__ = [
    "WELCOME",
    "HELP",
    "SCANNING",
    "NO_HISTORY",
    "INVALID_QUERY",
    "REFRESH_USAGE",
    "ERROR_GENERIC",
    "ERROR_TRY_LATER",
    "ERROR_NOT_FOUND",
]
