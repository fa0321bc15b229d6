"""Error hierarchy and error handling helpers."""

from .internal import (  # noqa: F401
    ConfigError,
    InternalError,
    NetworkError,
    OAuthError,
    ParsingError,
    RateLimitContext,
    RateLimitError,
    StoreError,
    TransportClosedError,
)

__all__ = [
    "ConfigError",
    "InternalError",
    "NetworkError",
    "OAuthError",
    "ParsingError",
    "RateLimitContext",
    "RateLimitError",
    "StoreError",
    "TransportClosedError",
]
