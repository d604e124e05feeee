"""
Services module - business logic layer.

Contains all services and the ServiceFactory for dependency injection.
"""

from tokenhealth.services.factory import ServiceFactory
from tokenhealth.services.scanner import TokenScanner

__all__ = ["ServiceFactory", "TokenScanner"]
