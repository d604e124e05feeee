"""
Error handling middleware for aiogram.

Turns scan exceptions into short user-facing replies and keeps the
technical details in the log.

Exception handling priority:
1. ValidationError → the query cannot be scanned
2. TokenNotFoundError → nothing is known about the token
3. DataFetchError → providers unavailable, try later
4. Unknown errors → generic message
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import Message, Update

from tokenhealth.core.exceptions import (
    DataFetchError,
    TokenHealthError,
    TokenNotFoundError,
    ValidationError,
)
from tokenhealth.templates.messages import (
    ERROR_GENERIC,
    ERROR_NOT_FOUND,
    ERROR_TRY_LATER,
    INVALID_QUERY,
)

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseMiddleware):
    """
    Global error handling middleware.

    Every TokenHealthError maps to a fixed template; anything else gets
    the generic message and a full traceback in the log. The exception
    never reaches the dispatcher.

    Usage:
        dp.update.middleware(ErrorHandlerMiddleware())
    """

    async def __call__(
        self,
        handler: Callable[[Update, dict[str, Any]], Awaitable[Any]],
        event: Update,
        data: dict[str, Any],
    ) -> Any:
        try:
            return await handler(event, data)

        except ValidationError as e:
            await self._handle_error(event, e, INVALID_QUERY, log_level="warning")

        # Subclass of DataFetchError, so it goes first
        except TokenNotFoundError as e:
            await self._handle_error(event, e, ERROR_NOT_FOUND, log_level="info")

        except DataFetchError as e:
            await self._handle_error(event, e, ERROR_TRY_LATER, log_level="error")

        except TokenHealthError as e:
            await self._handle_error(event, e, ERROR_GENERIC, log_level="error")

        except Exception as e:
            logger.exception(f"Unexpected error: {type(e).__name__}: {e}")
            await self._send_error_message(event, ERROR_GENERIC)

        return None

    async def _handle_error(
        self,
        event: Update,
        error: TokenHealthError,
        reply: str,
        log_level: str = "error",
    ) -> None:
        """
        Log a known error and answer with its template.

        Args:
            event: The update that caused the error
            error: The exception that was raised
            reply: Template sent to the user
            log_level: Logging level (info, warning, error)
        """
        log_func = getattr(logger, log_level)
        log_func(f"{type(error).__name__}: {error.technical_message}")
        await self._send_error_message(event, reply)

    async def _send_error_message(self, event: Update, text: str) -> None:
        msg: Message | None = None

        if event.message:
            msg = event.message
        elif event.callback_query and event.callback_query.message:
            msg = event.callback_query.message

        if msg is None:
            return

        try:
            await msg.answer(text)
        except Exception as e:
            logger.error(f"Failed to send error message: {e}")
