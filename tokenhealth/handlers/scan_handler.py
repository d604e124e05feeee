"""
Token scan handler.

Handles /refresh and any plain text message as a token query;
unknown commands are answered with the help text.
Main workflow:
1. Build a ScanRequest from the message
2. Run the scanner (cache, single-flight, aggregation, scoring)
3. Format and send the report

Validation, not-found and fetch errors are raised by the scanner and
answered by ErrorHandlerMiddleware.
"""

import logging

from aiogram import Router
from aiogram.enums import ChatAction
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from tokenhealth.core.models import ScanRequest
from tokenhealth.services.scanner import TokenScanner
from tokenhealth.templates.messages import HELP, INVALID_QUERY, REFRESH_USAGE
from tokenhealth.utils.formatters import format_health_report

logger = logging.getLogger(__name__)

router = Router(name="scan")


class TelegramIdentity:
    """IdentityProvider for the sender of one Telegram message."""

    def __init__(self, user_id: int | None):
        self._user_id = user_id

    def current_user_id(self) -> str | None:
        return str(self._user_id) if self._user_id is not None else None


def identity_for(message: Message) -> TelegramIdentity:
    return TelegramIdentity(message.from_user.id if message.from_user else None)


async def run_scan(message: Message, scanner: TokenScanner, request: ScanRequest) -> None:
    """Show the typing indicator, scan and reply with the report."""
    await message.bot.send_chat_action(
        chat_id=message.chat.id,
        action=ChatAction.TYPING,
    )

    metrics = await scanner.scan(request, identity_for(message))
    await message.answer(format_health_report(metrics))


@router.message(Command("refresh"))
async def handle_refresh(
    message: Message,
    command: CommandObject,
    scanner: TokenScanner,
) -> None:
    """
    Handle /refresh <query>.

    Same as a plain scan, but skips the cached report.
    """
    if not command.args:
        await message.answer(REFRESH_USAGE)
        return

    logger.debug(f"Forced refresh for {command.args!r}")
    await run_scan(message, scanner, ScanRequest(query=command.args, force_refresh=True))


@router.message()
async def handle_message(message: Message, scanner: TokenScanner) -> None:
    """
    Handle any text message as a token query.

    Catch-all: registered last so commands are matched first. Unknown
    commands get the help text instead of a scan.
    """
    if not message.text:
        await message.answer(INVALID_QUERY)
        return

    if message.text.startswith("/"):
        logger.debug(f"Unknown command {message.text.split()[0]!r}")
        await message.answer(HELP)
        return

    await run_scan(message, scanner, ScanRequest(query=message.text))
