"""Telegram handlers."""

from tokenhealth.handlers.router import setup_routers

__all__ = ["setup_routers"]
