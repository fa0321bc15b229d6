"""App access token (client-credentials grant) acquisition and upkeep."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

import aiohttp

from ..constants import (
    APP_TOKEN_CHECK_INTERVAL_SECONDS,
    APP_TOKEN_MAX_ATTEMPTS,
    APP_TOKEN_MIN_REMAINING_SECONDS,
    TWITCH_OAUTH_URL,
)
from ..errors.handling import error_for_status, handle_api_error, log_error, retry_network_operation
from ..errors.internal import InternalError, OAuthError, ParsingError
from ..logs.logger import logger


class AppTokenManager:
    """Keeps a valid app access token around for Helix calls.

    The token is requested lazily on first use. ``start()`` runs a loop that
    validates it every ``check_interval`` seconds and requests a new one when
    it was revoked or expires within ``min_remaining`` seconds.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        client_id: str,
        client_secret: str,
        *,
        check_interval: float = APP_TOKEN_CHECK_INTERVAL_SECONDS,
        min_remaining: float = APP_TOKEN_MIN_REMAINING_SECONDS,
        max_attempts: int = APP_TOKEN_MAX_ATTEMPTS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._session = session
        self.client_id = client_id
        self.client_secret = client_secret
        self.check_interval = check_interval
        self.min_remaining = min_remaining
        self.max_attempts = max_attempts
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()
        self.task: asyncio.Task[None] | None = None
        self.running = False

    @property
    def has_token(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at

    async def get_token(self) -> str:
        if self.has_token:
            return self._token  # type: ignore[return-value]
        async with self._lock:
            if not self.has_token:
                await self._refresh_locked()
        return self._token  # type: ignore[return-value]

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def refresh(self) -> str:
        async with self._lock:
            return await self._refresh_locked()

    async def _refresh_locked(self) -> str:
        payload = await retry_network_operation(
            self._request_token, "app token request", max_attempts=self.max_attempts
        )
        try:
            token = str(payload["access_token"])
            expires_in = float(payload["expires_in"])
        except (KeyError, TypeError, ValueError) as e:
            raise ParsingError("Malformed client-credentials response") from e
        self._token = token
        self._expires_at = self._clock() + expires_in
        logger.log_event("api", "app_token_refreshed", expires_in=int(expires_in))
        return token

    async def _request_token(self) -> dict[str, Any]:
        async def operation() -> dict[str, Any]:
            params = {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            }
            async with self._session.post(f"{TWITCH_OAUTH_URL}/token", params=params) as resp:
                error = error_for_status(resp.status, "app token request")
                if error is not None:
                    raise error
                if resp.status == 404:
                    raise OAuthError("Token endpoint returned 404")
                return await resp.json()

        return await handle_api_error(operation, "app token request")

    async def validate(self) -> float | None:
        """Seconds the current token has left per Twitch, None when invalid."""
        if self._token is None:
            return None
        token = self._token

        async def operation() -> float | None:
            headers = {"Authorization": f"OAuth {token}"}
            async with self._session.get(f"{TWITCH_OAUTH_URL}/validate", headers=headers) as resp:
                if resp.status == 401:
                    return None
                error = error_for_status(resp.status, "app token validation")
                if error is not None:
                    raise error
                data = await resp.json()
                return float(data.get("expires_in", 0))

        return await handle_api_error(operation, "app token validation")

    async def maintain(self) -> None:
        """One upkeep pass: refresh when invalid or close to expiry."""
        try:
            remaining = await self.validate()
        except InternalError as e:
            log_error("App token validation failed", e)
            return
        if remaining is None:
            logger.log_event("api", "app_token_invalid", level=logging.WARNING)
        elif remaining >= self.min_remaining:
            self._expires_at = self._clock() + remaining
            return
        try:
            await self.refresh()
        except InternalError as e:
            log_error("App token refresh failed", e)

    async def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.task = asyncio.create_task(self._upkeep_loop())
        logging.debug("▶️ Started app token upkeep loop")

    async def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        task, self.task = self.task, None
        if task:
            task.cancel()
            await asyncio.wait({task})

    async def _upkeep_loop(self) -> None:
        while self.running:
            await asyncio.sleep(self.check_interval)
            await self.maintain()
