"""
Shared HTTP plumbing for provider clients.

Every provider client inherits from ProviderClient, which implements the
bounded-time, bounded-retry contract:

1. Each attempt runs under aiohttp.ClientTimeout(total=timeout)
2. Transport failures (network error, timeout, HTTP 5xx) are retried
   up to max_retries times with a growing delay
3. Logical failures (HTTP 4xx, provider error payloads, invalid payload
   shape) are returned immediately
4. Nothing is raised past the client: the caller always gets a
   ProviderResult

NO business logic, NO scoring.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import aiohttp

from tokenhealth.core.results import (
    Err,
    Ok,
    ProviderResult,
    logical_error,
    transport_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ProviderConfig:
    """
    Per-client configuration.

    Frozen dataclass ensures immutability. Built by ServiceFactory from
    Settings and passed into each client constructor.
    """

    base_url: str
    api_key: str = ""
    timeout: float = 10.0
    max_retries: int = 1
    retry_backoff: float = 1.0
    backoff_multiplier: float = 1.5


class ProviderClient:
    """
    Base class for all provider clients.

    Subclasses set `name`, optionally override `_headers()` and
    `_check_payload()`, and turn raw JSON into typed payloads with
    `_parse()`.
    """

    name = "provider"

    def __init__(self, config: ProviderConfig):
        """
        Initialize provider client.

        Args:
            config: Base URL, credentials, timeout and retry policy
        """
        self._config = config

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def _headers(self) -> dict[str, str]:
        """Extra request headers (auth, API version)."""
        return {}

    def _check_payload(self, data: Any) -> str | None:
        """
        Detect a provider error carried in a 200 response.

        Returns:
            Error description, or None if the payload is usable
        """
        return None

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        base = self._config.base_url.rstrip("/")
        return f"{base}/{path.lstrip('/')}" if path else base

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ProviderResult[Any]:
        """
        GET a JSON document with timeout and bounded retries.

        Args:
            path: Path relative to base_url, or an absolute URL
            params: Query parameters
            timeout: Per-attempt timeout override, seconds

        Returns:
            Ok(raw JSON) or Err(kind, provider, detail)
        """
        url = self._url(path)
        attempts = self._config.max_retries + 1
        delay = self._config.retry_backoff
        last_error: Err | None = None

        for attempt in range(1, attempts + 1):
            result = await self._attempt(url, params, timeout or self._config.timeout)

            if result.ok:
                return result

            if not result.is_transport:
                logger.warning(f"{self.name}: {result.detail} (not retried)")
                return result

            last_error = result
            if attempt < attempts:
                logger.warning(
                    f"{self.name}: {result.detail}, retrying in {delay:.1f}s "
                    f"(attempt {attempt}/{attempts})"
                )
                await asyncio.sleep(delay)
                delay *= self._config.backoff_multiplier

        logger.warning(f"{self.name}: giving up after {attempts} attempts: {last_error.detail}")
        return last_error

    async def _attempt(
        self,
        url: str,
        params: dict[str, Any] | None,
        timeout: float,
    ) -> ProviderResult[Any]:
        """Run a single request and classify its outcome."""
        client_timeout = aiohttp.ClientTimeout(total=timeout)

        try:
            async with aiohttp.ClientSession(
                headers=self._headers(), timeout=client_timeout
            ) as session:
                async with session.get(url, params=params) as resp:
                    if resp.status >= 500:
                        return transport_error(self.name, f"HTTP {resp.status}")
                    if resp.status == 429:
                        return logical_error(self.name, "rate limited (HTTP 429)")
                    if resp.status == 404:
                        return logical_error(self.name, "not found (HTTP 404)")
                    if resp.status >= 400:
                        return logical_error(self.name, f"HTTP {resp.status}")

                    try:
                        data = await resp.json(content_type=None)
                    except (json.JSONDecodeError, aiohttp.ContentTypeError, ValueError):
                        return logical_error(self.name, "malformed JSON response")

        except TimeoutError:
            return transport_error(self.name, f"timeout after {timeout}s")
        except aiohttp.ClientError as e:
            return transport_error(self.name, f"{type(e).__name__}: {e}")

        error = self._check_payload(data)
        if error:
            return logical_error(self.name, error)

        return Ok(data)

    def _parse(
        self,
        result: ProviderResult[Any],
        parser: Callable[[Any], T],
    ) -> ProviderResult[T]:
        """
        Validate a raw payload into its typed shape.

        A payload that does not fit is a logical error for this provider.
        """
        if not isinstance(result, Ok):
            return result

        try:
            payload = parser(result.payload)
        except (ValueError, KeyError, TypeError, AttributeError, IndexError) as e:
            # pydantic.ValidationError is a ValueError
            logger.warning(f"{self.name}: invalid payload: {type(e).__name__}: {e}")
            return logical_error(self.name, f"invalid payload: {type(e).__name__}")

        return Ok(payload, fetched_at=result.fetched_at)


def to_float(value: Any) -> float | None:
    """Parse a provider number that may arrive as str, int, float or null."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value: Any) -> int | None:
    """Parse a provider integer that may arrive as str, int or null."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
