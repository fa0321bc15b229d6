"""Long-lived chat session: handshake, frame pump and cooperative reconnects."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from ..constants import DUPLICATE_MESSAGE_SUFFIX, IRC_CAPABILITIES, RECONNECT_DELAY_SECONDS
from ..errors.internal import InternalError, TransportClosedError
from ..logs.logger import logger
from . import frames
from .models import SessionState
from .transport import Transport, WebSocketTransport

if TYPE_CHECKING:  # pragma: no cover
    from ..storage.protocols import ChannelStore
    from .dispatcher import IRCDispatcher


class IRCSession:  # pylint: disable=too-many-instance-attributes
    """Owns the transport and keeps one chat connection alive.

    The state only moves to CLOSED through ``close()``; every other loss of
    the transport ends in RECONNECTING, which retries with a fixed delay until
    a new transport is up.
    """

    def __init__(
        self,
        nick: str,
        token: str,
        channel_store: ChannelStore,
        *,
        capabilities: Iterable[str] = IRC_CAPABILITIES,
        transport_factory: Callable[[], Transport] = WebSocketTransport,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
    ) -> None:
        self.nick = nick.lower()
        self.token = token
        self.channel_store = channel_store
        self.capabilities = tuple(capabilities)
        self.transport_factory = transport_factory
        self.reconnect_delay = reconnect_delay
        self.transport: Transport | None = None
        self.state = SessionState.DISCONNECTED
        self.dispatcher: IRCDispatcher | None = None
        self.message_buffer = ""
        self._last_message = ""
        self._reconnect_lock = asyncio.Lock()
        self._reconnect_task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()

    def _set_state(self, new_state: SessionState) -> None:
        if self.state != new_state:
            logger.log_event(
                "irc",
                "state_change",
                level=logging.DEBUG,
                user=self.nick,
                old_state=self.state.name,
                new_state=new_state.name,
            )
            self.state = new_state

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN and self.transport is not None

    # Lifecycle -----------------------------------------------------------

    async def connect(self) -> None:
        """Open the first transport, handshake and replay channel joins."""
        self._set_state(SessionState.CONNECTING)
        logger.log_event("irc", "connect_start", user=self.nick)
        transport = await self._open_transport()
        self.transport = transport
        self.message_buffer = ""
        self._set_state(SessionState.OPEN)
        await self._replay_joins(transport)
        logger.log_event("irc", "connect_success", user=self.nick)

    async def run(self) -> None:
        """Pump frames until ``close()``; transport loss triggers a reconnect."""
        try:
            await self.connect()
        except (InternalError, OSError) as e:
            logger.log_event(
                "irc", "connect_failed", level=logging.ERROR, user=self.nick, error=str(e)
            )
            await self._wait_reconnect("initial connect failed")

        while self.state is not SessionState.CLOSED:
            transport = self.transport
            if transport is None:
                await self._wait_reconnect("no transport")
                continue
            try:
                data = await transport.recv()
            except TransportClosedError as e:
                if self.state is SessionState.CLOSED:
                    break
                if transport is not self.transport:
                    # Swapped out by a reconnect while we were reading.
                    continue
                logger.log_event(
                    "irc", "transport_closed", level=logging.WARNING, user=self.nick, error=str(e)
                )
                await self._wait_reconnect("transport closed")
                continue
            await self._feed(transport, data)
        self._stopped.set()

    async def _feed(self, transport: Transport, data: str) -> None:
        if self.dispatcher is None:
            return
        buffer = await self.dispatcher.process_incoming_data(self.message_buffer, data)
        if transport is self.transport:
            self.message_buffer = buffer

    async def close(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self._set_state(SessionState.CLOSED)
        task, self._reconnect_task = self._reconnect_task, None
        if task and not task.done():
            task.cancel()
            await asyncio.wait({task})
        transport, self.transport = self.transport, None
        if transport is not None:
            await transport.close()
        logger.log_event("irc", "closed", user=self.nick)

    # Reconnect -----------------------------------------------------------

    def request_reconnect(self, reason: str) -> asyncio.Task[None]:
        """Schedule a reconnect, or return the one already in flight."""
        task = self._reconnect_task
        if task is None or task.done():
            task = asyncio.create_task(self.reconnect(reason))
            self._reconnect_task = task
        return task

    async def _wait_reconnect(self, reason: str) -> None:
        task = self.request_reconnect(reason)
        # asyncio.wait does not propagate the task's cancellation into run().
        await asyncio.wait({task})

    async def reconnect(self, reason: str = "requested") -> None:
        if self._reconnect_lock.locked():
            return
        async with self._reconnect_lock:
            if self.state is SessionState.CLOSED:
                return
            self._set_state(SessionState.RECONNECTING)
            logger.log_event(
                "irc",
                "reconnect_start",
                level=logging.WARNING,
                user=self.nick,
                reason=reason,
                delay=self.reconnect_delay,
            )
            old = self.transport
            attempt = 0
            while self.state is not SessionState.CLOSED:
                attempt += 1
                await asyncio.sleep(self.reconnect_delay)
                if self.state is SessionState.CLOSED:
                    return
                self._set_state(SessionState.CONNECTING)
                new: Transport | None = None
                try:
                    new = await self._open_transport()
                    await self._replay_joins(new)
                except (InternalError, OSError) as e:
                    if new is not None:
                        await new.close()
                    logger.log_event(
                        "irc",
                        "reconnect_failed",
                        level=logging.ERROR,
                        user=self.nick,
                        attempt=attempt,
                        error=str(e),
                    )
                    self._set_state(SessionState.RECONNECTING)
                    continue
                self.transport = new
                self.message_buffer = ""
                self._set_state(SessionState.OPEN)
                if old is not None:
                    await old.close()
                logger.log_event("irc", "reconnect_success", user=self.nick, attempt=attempt)
                return

    # Handshake -----------------------------------------------------------

    async def _open_transport(self) -> Transport:
        transport = self.transport_factory()
        await transport.connect()
        try:
            await transport.send(frames.pass_line(self.token))
            await transport.send(frames.nick_line(self.nick))
            await transport.send(frames.cap_request_line(self.capabilities))
        except InternalError:
            await transport.close()
            raise
        logger.log_event("irc", "auth_sent", level=logging.DEBUG, user=self.nick)
        return transport

    async def _replay_joins(self, transport: Transport) -> None:
        try:
            channels = await self.channel_store.find_connected_channels()
        except InternalError as e:
            logger.log_event(
                "irc", "replay_joins_failed", level=logging.ERROR, user=self.nick, error=str(e)
            )
            return
        for record in channels:
            await transport.send(frames.join_line(record.name))
        logger.log_event("irc", "joins_replayed", user=self.nick, count=len(channels))

    # Outbound ------------------------------------------------------------

    async def _send(self, line: str) -> bool:
        transport = self.transport
        if transport is None or self.state is SessionState.CLOSED:
            logger.log_event(
                "irc",
                "send_dropped",
                level=logging.WARNING,
                user=self.nick,
                line=line.rstrip(),
            )
            return False
        try:
            await transport.send(line)
        except TransportClosedError as e:
            logger.log_event(
                "irc", "send_failed", level=logging.WARNING, user=self.nick, error=str(e)
            )
            return False
        return True

    async def send_message(self, channel: str, text: str) -> bool:
        if text == self._last_message:
            # Twitch silently drops a message identical to the previous one.
            text += DUPLICATE_MESSAGE_SUFFIX
        sent = await self._send(frames.privmsg_line(channel, text))
        if sent:
            self._last_message = text
            logger.log_event(
                "irc",
                "privmsg_sent",
                level=logging.DEBUG,
                user=self.nick,
                channel=channel.lstrip("#").lower(),
                chat_message=text,
            )
        return sent

    async def join(self, channel: str) -> bool:
        sent = await self._send(frames.join_line(channel))
        if sent:
            logger.log_event("irc", "join_sent", user=self.nick, channel=channel.lstrip("#").lower())
        return sent

    async def part(self, channel: str) -> bool:
        sent = await self._send(frames.part_line(channel))
        if sent:
            logger.log_event("irc", "part_sent", user=self.nick, channel=channel.lstrip("#").lower())
        return sent

    async def pong(self, source: str) -> bool:
        return await self._send(frames.pong_line(source))

    async def wait_closed(self) -> None:
        await self._stopped.wait()
