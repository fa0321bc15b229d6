from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..logging_config import log_structured_error
from .internal import (
    InternalError,
    NetworkError,
    OAuthError,
    ParsingError,
    RateLimitContext,
    RateLimitError,
    StoreError,
    TransportClosedError,
)

T = TypeVar("T")


def log_error(message: str, error: Exception, context: dict | None = None) -> None:
    """Logs an error message with the associated exception details.

    The exception is classified into a coarse category so the error aggregator
    can report rates per category.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
    """
    error_type = "unknown"
    if isinstance(error, NetworkError | TransportClosedError | OSError | ConnectionError):
        error_type = "network"
    elif isinstance(error, OAuthError):
        error_type = "auth"
    elif isinstance(error, RateLimitError):
        error_type = "ratelimit"
    elif isinstance(error, ParsingError):
        error_type = "parsing"
    elif isinstance(error, StoreError):
        error_type = "store"
    elif isinstance(error, InternalError):
        error_type = "internal"

    log_structured_error(
        error_type=error_type,
        message=f"{message}: {str(error)}",
        exception=error,
        context=context,
    )


def error_for_status(
    status: int, context: str, headers: dict[str, str] | None = None
) -> InternalError | None:
    """Map a non-success HTTP status onto the internal error hierarchy.

    Returns None for 2xx statuses and for 404, which callers treat as
    "not found" rather than failure.
    """
    if 200 <= status < 300 or status == 404:
        return None
    if status == 401 or status == 403:
        return OAuthError(
            f"Authentication failed in {context} (HTTP {status}). Token may be expired or invalid."
        )
    if status == 429:
        headers = headers or {}
        return RateLimitError(
            f"API rate limit exceeded in {context}.",
            context=RateLimitContext(
                remaining=_int_or_none(headers.get("Ratelimit-Remaining")),
                reset_at=_int_or_none(headers.get("Ratelimit-Reset")),
            ),
        )
    if 400 <= status < 500:
        return ParsingError(
            f"Client error in {context} (HTTP {status}). Check request parameters."
        )
    return NetworkError(f"Server error in {context} (HTTP {status}).")


def _int_or_none(value: str | None) -> int | None:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


async def handle_api_error(operation: Callable[[], Awaitable[T]], context: str) -> T:  # type: ignore[valid-type]
    """Run an API operation and translate library failures into InternalError subclasses.

    Args:
        operation: The async API operation to execute.
        context: Descriptive context for the operation (e.g., "Twitch API call").

    Returns:
        The result of the operation if successful.

    Raises:
        NetworkError, ParsingError or InternalError wrapping the original exception.
    """
    try:
        return await operation()
    except InternalError:
        raise
    except (aiohttp.ContentTypeError, ValueError) as e:
        log_error(f"API response parsing failed in {context}", e)
        raise ParsingError(
            f"Malformed response in {context}. Error: {str(e)}"
        ) from e
    except (aiohttp.ClientError, TimeoutError, OSError) as e:
        error_context = {"operation": context, "timestamp": time.time()}
        if hasattr(e, "status"):
            error_context["http_status"] = e.status
        log_error(f"API operation failed in {context}", e, context=error_context)
        raise NetworkError(
            f"Network connectivity issue in {context}. Error: {str(e)}"
        ) from e


async def retry_network_operation(  # type: ignore[valid-type]
    operation: Callable[[], Awaitable[T]],
    context: str,
    max_attempts: int = 3,
    max_wait: float = 30.0,
) -> T:
    """Retry an operation on NetworkError / RateLimitError with exponential backoff.

    Auth and parsing errors are not retried. When attempts are exhausted the
    last exception is re-raised unchanged.
    """

    def before_retry(retry_state) -> None:  # type: ignore[no-untyped-def]
        if retry_state.attempt_number > 1:
            logging.info(f"🔁 Retrying {context} (attempt {retry_state.attempt_number})")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, max=max_wait),
        retry=retry_if_exception_type((NetworkError, RateLimitError)),
        before=before_retry,
        reraise=True,
    )
    try:
        return await retrying(operation)
    except RetryError as e:  # pragma: no cover - reraise=True surfaces the original
        raise InternalError(f"Retries exhausted for {context}") from e
