"""Utility functions."""

from tokenhealth.utils.formatters import format_health_report
from tokenhealth.utils.validators import validate_query

__all__ = ["validate_query", "format_health_report"]
