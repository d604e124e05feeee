"""Middleware for aiogram."""

from tokenhealth.middleware.error_handler import ErrorHandlerMiddleware
from tokenhealth.middleware.logging import LoggingMiddleware

__all__ = ["ErrorHandlerMiddleware", "LoggingMiddleware"]
