"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the boundaries the bot talks
to. Only raise these inside application/network boundaries; never surface raw
aiohttp / sqlite / websockets errors to callers, wrap them instead.

Classes:
  InternalError        – Base for all internal errors.
  NetworkError         – Transient network/IO issues.
  OAuthError           – Authentication / authorization related failures.
  ParsingError         – Response parsing / schema validation issues.
  RateLimitError       – Explicit rate limiting signalled by remote service.
  StoreError           – Persistent store read/write failure.
  TransportClosedError – The chat transport closed underneath a read or write.
  ConfigError          – Settings could not be loaded or validated.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


class InternalError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors."""


class OAuthError(InternalError):
    """Exception raised for OAuth authentication or authorization failures."""


class ParsingError(InternalError):
    """Exception raised for response parsing or schema validation errors."""


@dataclass
class RateLimitContext:
    """Context information for rate limiting errors.

    Attributes:
        remaining: The number of remaining requests allowed, or None if unknown.
        reset_at: Unix time at which the bucket refills, or None if unknown.
    """

    remaining: int | None = None
    reset_at: int | None = None


class RateLimitError(InternalError):
    """Exception raised when rate limiting is encountered."""

    def __init__(
        self, message: str = "Rate limited", *, context: RateLimitContext | None = None
    ):
        super().__init__(message, data={"rate_limit": context})


class StoreError(InternalError):
    """Exception raised when the persistent store cannot complete an operation."""


class TransportClosedError(InternalError):
    """Exception raised when the chat transport is closed or unusable."""


class ConfigError(InternalError):
    """Exception raised when settings are missing or invalid."""


__all__ = [
    "InternalError",
    "NetworkError",
    "OAuthError",
    "ParsingError",
    "RateLimitError",
    "RateLimitContext",
    "StoreError",
    "TransportClosedError",
    "ConfigError",
]
