"""
Tagged result type returned by every provider client.

A provider call never raises past the client boundary. It produces either
Ok(payload, fetched_at) or Err(kind, provider, detail). Consumers branch on
`result.ok` (or isinstance) and read `payload` only from Ok.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FailureKind(str, Enum):
    """
    Why a provider call failed.

    TRANSPORT: network error, timeout, 5xx, abandoned at deadline.
               Retried (bounded) inside the client.
    LOGICAL:   well-formed error from the provider (not found, rate limit,
               error payload, invalid payload shape). Never retried.
    """

    TRANSPORT = "transport"
    LOGICAL = "logical"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful provider call."""

    payload: T
    fetched_at: float = field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed provider call."""

    kind: FailureKind
    provider: str
    detail: str = ""

    @property
    def ok(self) -> bool:
        return False

    @property
    def is_transport(self) -> bool:
        return self.kind is FailureKind.TRANSPORT


ProviderResult = Ok[T] | Err


def transport_error(provider: str, detail: str) -> Err:
    return Err(kind=FailureKind.TRANSPORT, provider=provider, detail=detail)


def logical_error(provider: str, detail: str) -> Err:
    return Err(kind=FailureKind.LOGICAL, provider=provider, detail=detail)


def payload_or_none(result: "ProviderResult | None"):
    """Return the payload of an Ok result, None for Err or a skipped call."""
    if isinstance(result, Ok):
        return result.payload
    return None
