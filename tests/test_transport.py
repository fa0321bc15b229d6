from unittest.mock import AsyncMock, patch

import pytest
import websockets

from mechbot.errors.internal import NetworkError, TransportClosedError
from mechbot.irc.transport import WebSocketTransport


def _fake_ws():
    ws = AsyncMock()
    ws.recv = AsyncMock(return_value="PING :tmi.twitch.tv\r\n")
    return ws


@pytest.mark.asyncio
async def test_connect_send_recv_close():
    ws = _fake_ws()
    with patch("mechbot.irc.transport.websockets.connect", AsyncMock(return_value=ws)) as connect:
        transport = WebSocketTransport("wss://chat.example.test")
        await transport.connect()
    connect.assert_awaited_once_with("wss://chat.example.test")
    await transport.send("NICK mechbot\r\n")
    ws.send.assert_awaited_once_with("NICK mechbot\r\n")
    assert await transport.recv() == "PING :tmi.twitch.tv\r\n"
    await transport.close()
    ws.close.assert_awaited_once_with(code=1000)
    assert transport.ws is None
    # Second close is a no-op
    await transport.close()


@pytest.mark.asyncio
async def test_binary_frames_are_decoded():
    ws = _fake_ws()
    ws.recv = AsyncMock(return_value="héllo".encode())
    with patch("mechbot.irc.transport.websockets.connect", AsyncMock(return_value=ws)):
        transport = WebSocketTransport()
        await transport.connect()
    assert await transport.recv() == "héllo"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [OSError("refused"), TimeoutError()])
async def test_connect_failure_is_network_error(error):
    with patch("mechbot.irc.transport.websockets.connect", AsyncMock(side_effect=error)):
        with pytest.raises(NetworkError):
            await WebSocketTransport().connect()


@pytest.mark.asyncio
async def test_closed_connection_raises_transport_closed():
    ws = _fake_ws()
    closed = websockets.exceptions.ConnectionClosed(None, None)
    ws.recv = AsyncMock(side_effect=closed)
    ws.send = AsyncMock(side_effect=closed)
    with patch("mechbot.irc.transport.websockets.connect", AsyncMock(return_value=ws)):
        transport = WebSocketTransport()
        await transport.connect()
    with pytest.raises(TransportClosedError):
        await transport.recv()
    with pytest.raises(TransportClosedError):
        await transport.send("x")


@pytest.mark.asyncio
async def test_unconnected_transport_raises_transport_closed():
    transport = WebSocketTransport()
    with pytest.raises(TransportClosedError):
        await transport.recv()
    with pytest.raises(TransportClosedError):
        await transport.send("x")
