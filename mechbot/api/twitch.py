"""Thin asynchronous Twitch Helix API client.

Wraps only the endpoints the bot needs: user lookups and live status. If new
endpoints are needed, prefer adding focused methods instead of sprinkling raw
request logic across modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import aiohttp

from ..constants import TWITCH_HELIX_URL
from ..errors.handling import error_for_status, handle_api_error
from ..errors.internal import OAuthError, ParsingError


class TokenProvider(Protocol):
    async def get_token(self) -> str: ...

    def invalidate(self) -> None: ...


@dataclass(frozen=True, slots=True)
class TwitchUser:
    id: int
    login: str
    display_name: str


class TwitchAPI:
    """Asynchronous client for the Twitch Helix endpoints the bot uses.

    Every method raises an ``InternalError`` subclass on failure and returns
    None / False for "not found", so callers can tell the two apart.

    Attributes:
        BASE_URL (str): The base URL for Twitch Helix API.
    """

    BASE_URL = TWITCH_HELIX_URL

    def __init__(
        self,
        session: aiohttp.ClientSession,
        client_id: str,
        token_provider: TokenProvider,
    ) -> None:
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session
        self.client_id = client_id
        self.token_provider = token_provider

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | list[tuple[str, str]] | None = None,
    ) -> tuple[dict[str, Any], int]:
        """Perform an authenticated Helix request.

        Args:
            method (str): HTTP method (e.g., 'GET').
            endpoint (str): API endpoint path (without base URL).
            params: Query parameters for the request.

        Returns:
            tuple[dict[str, Any], int]: JSON body (empty for 404/204) and HTTP status.

        Raises:
            OAuthError: Token rejected (the cached token is invalidated).
            RateLimitError: Helix rate limit bucket exhausted.
            ParsingError: Malformed response or other client error.
            NetworkError: Connectivity problem or server error.
        """
        context = f"Twitch API {method} {endpoint}"
        token = await self.token_provider.get_token()

        async def operation() -> tuple[dict[str, Any], int]:
            headers = {
                "Authorization": f"Bearer {token}",
                "Client-Id": self.client_id,
            }
            url = f"{self.BASE_URL}/{endpoint}"
            async with self._session.request(method, url, headers=headers, params=params) as resp:
                logging.debug(f"Twitch API response: status={resp.status}, url={url}")
                error = error_for_status(resp.status, context, dict(resp.headers))
                if error is not None:
                    raise error
                if resp.status in (204, 404):
                    return {}, resp.status
                data = await resp.json()
                if not isinstance(data, dict):
                    raise ParsingError(f"Unexpected payload type in {context}")
                return data, resp.status

        try:
            return await handle_api_error(operation, context)
        except OAuthError:
            self.token_provider.invalidate()
            raise

    @staticmethod
    def _rows(data: dict[str, Any]) -> list[dict[str, Any]]:
        rows = data.get("data", [])
        if not isinstance(rows, list):
            raise ParsingError("Helix payload 'data' is not a list")
        return [r for r in rows if isinstance(r, dict)]

    @staticmethod
    def _user(row: dict[str, Any]) -> TwitchUser:
        try:
            return TwitchUser(
                id=int(row["id"]),
                login=str(row["login"]).lower(),
                display_name=str(row.get("display_name") or row["login"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ParsingError(f"Malformed Helix user row: {row!r}") from e

    async def _first_user(self, params: dict[str, str]) -> TwitchUser | None:
        data, _ = await self.request("GET", "users", params=params)
        rows = self._rows(data)
        return self._user(rows[0]) if rows else None

    async def resolve_user_by_login(self, login: str) -> TwitchUser | None:
        login = login.strip().lstrip("#").lower()
        if not login:
            return None
        return await self._first_user({"login": login})

    async def resolve_user_by_id(self, user_id: int) -> TwitchUser | None:
        return await self._first_user({"id": str(user_id)})

    async def is_channel_live(self, channel_id: int) -> bool:
        data, _ = await self.request("GET", "streams", params={"user_id": str(channel_id)})
        return bool(self._rows(data))
