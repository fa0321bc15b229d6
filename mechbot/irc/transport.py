"""Chat transport over a WebSocket connection."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import websockets

from ..constants import IRC_CONNECT_TIMEOUT_SECONDS, TWITCH_IRC_WS_URL
from ..errors.internal import NetworkError, TransportClosedError

TRANSPORT_NOT_CONNECTED_ERROR = "Transport not connected"


class Transport(Protocol):
    """Text pipe the session speaks the line protocol over."""

    async def connect(self) -> None: ...

    async def send(self, data: str) -> None: ...

    async def recv(self) -> str: ...

    async def close(self) -> None: ...


class WebSocketTransport:
    """Twitch chat over a secure WebSocket.

    Attributes:
        url (str): WebSocket endpoint.
        ws: Active connection, None when closed.
    """

    def __init__(
        self,
        url: str = TWITCH_IRC_WS_URL,
        connect_timeout: float = IRC_CONNECT_TIMEOUT_SECONDS,
    ) -> None:
        self.url = url
        self.connect_timeout = connect_timeout
        self.ws: Any = None

    async def connect(self) -> None:
        logging.info(f"🔌 Connecting to chat at {self.url}")
        try:
            self.ws = await asyncio.wait_for(
                websockets.connect(self.url), timeout=self.connect_timeout
            )
        except (OSError, TimeoutError, websockets.exceptions.WebSocketException) as e:
            raise NetworkError(
                f"WebSocket connection failed: {str(e)}", data={"url": self.url}
            ) from e
        logging.info("🔌 Chat connection established")

    async def send(self, data: str) -> None:
        if self.ws is None:
            raise TransportClosedError(TRANSPORT_NOT_CONNECTED_ERROR)
        try:
            await self.ws.send(data)
        except websockets.exceptions.ConnectionClosed as e:
            raise TransportClosedError(f"WebSocket send failed: {str(e)}") from e

    async def recv(self) -> str:
        if self.ws is None:
            raise TransportClosedError(TRANSPORT_NOT_CONNECTED_ERROR)
        try:
            message = await self.ws.recv()
        except websockets.exceptions.ConnectionClosed as e:
            raise TransportClosedError(f"WebSocket closed: {str(e)}") from e
        if isinstance(message, bytes):
            return message.decode("utf-8", errors="replace")
        return message

    async def close(self) -> None:
        ws, self.ws = self.ws, None
        if ws is None:
            return
        try:
            await ws.close(code=1000)
            logging.info("🔌 Chat connection closed")
        except (OSError, websockets.exceptions.WebSocketException) as e:
            logging.warning(f"⚠️ WebSocket close error: {str(e)}")
