"""
Logging middleware for aiogram.

One line per incoming update (who asked for what) and one per finished
update with its duration. Scans hit up to seven providers, so slow
updates are logged at WARNING.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from aiogram import BaseMiddleware
from aiogram.types import Update

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseMiddleware):
    """
    Logs incoming updates and their processing time.

    Usage:
        dp.update.middleware(LoggingMiddleware(slow_threshold=20.0))
    """

    MAX_TEXT_LENGTH = 100

    def __init__(self, slow_threshold: float = 20.0):
        """
        Args:
            slow_threshold: Seconds after which an update counts as slow
        """
        self.slow_threshold = slow_threshold

    async def __call__(
        self,
        handler: Callable[[Update, dict[str, Any]], Awaitable[Any]],
        event: Update,
        data: dict[str, Any],
    ) -> Any:
        start_time = time.monotonic()
        logger.info(f"Incoming: {self._describe_user(event)} | {self._describe_request(event)}")

        try:
            result = await handler(event, data)
        except Exception as e:
            elapsed = time.monotonic() - start_time
            logger.error(f"Failed after {elapsed:.2f}s: {type(e).__name__}: {e}")
            raise

        elapsed = time.monotonic() - start_time
        if elapsed >= self.slow_threshold:
            logger.warning(f"Slow update {event.update_id}: {elapsed:.2f}s")
        else:
            logger.debug(f"Update {event.update_id} processed in {elapsed:.2f}s")
        return result

    def _describe_user(self, event: Update) -> str:
        user = None
        if event.message:
            user = event.message.from_user
        elif event.callback_query:
            user = event.callback_query.from_user

        if user is None:
            return "user=unknown"
        username = f"@{user.username}" if user.username else "no_username"
        return f"user={user.id} ({username})"

    def _describe_request(self, event: Update) -> str:
        """Command name for commands, truncated query text otherwise."""
        if event.message and event.message.text:
            text = event.message.text.strip()
            if text.startswith("/"):
                return f"command={text.split(maxsplit=1)[0]}"
            if len(text) > self.MAX_TEXT_LENGTH:
                text = text[: self.MAX_TEXT_LENGTH] + "..."
            return f'query="{text}"'

        if event.callback_query:
            return f"callback={event.callback_query.data}"

        return "type=other"
