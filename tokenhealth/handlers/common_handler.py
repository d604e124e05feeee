"""
Common handlers for basic bot commands.

Handles:
- /start - Welcome message
- /help - Usage instructions
- /history - The caller's recent scans
"""

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from tokenhealth.core.protocols import HistorySink
from tokenhealth.templates.messages import HELP, NO_HISTORY, WELCOME
from tokenhealth.utils.formatters import format_history

router = Router(name="common")

HISTORY_LIMIT = 10


@router.message(Command("start"))
async def handle_start(message: Message) -> None:
    """Send the welcome message with query examples."""
    await message.answer(WELCOME)


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    await message.answer(HELP)


@router.message(Command("history"))
async def handle_history(message: Message, history: HistorySink) -> None:
    """
    Handle /history command.

    Lists the caller's most recent scans, newest first.
    """
    if message.from_user is None:
        await message.answer(NO_HISTORY)
        return

    records = await history.recent(str(message.from_user.id), limit=HISTORY_LIMIT)
    if not records:
        await message.answer(NO_HISTORY)
        return

    await message.answer(format_history(records))
