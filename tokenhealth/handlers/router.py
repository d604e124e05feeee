"""
Router setup and configuration.

Registers all handlers and middleware with the dispatcher.
Order matters - command handlers are registered before catch-all.
"""

from aiogram import Dispatcher

from tokenhealth.core.protocols import HistorySink
from tokenhealth.handlers import common_handler, scan_handler
from tokenhealth.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from tokenhealth.services.scanner import TokenScanner


def setup_routers(
    dp: Dispatcher,
    scanner: TokenScanner,
    history: HistorySink,
) -> None:
    """
    Configure dispatcher with all routers and middleware.

    Sets up:
    1. Global middleware (logging outermost, then error handling)
    2. Command handlers (/start, /help, /history)
    3. Scan handlers (/refresh, then the catch-all)

    Args:
        dp: Aiogram dispatcher
        scanner: Token scanner injected into scan handlers
        history: History sink injected into /history
    """
    dp.update.middleware(LoggingMiddleware())
    dp.update.middleware(ErrorHandlerMiddleware())

    # Available as handler arguments
    dp["scanner"] = scanner
    dp["history"] = history

    dp.include_router(common_handler.router)
    dp.include_router(scan_handler.router)
