"""Frame routing: split, parse and hand each event to its consumer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import TYPE_CHECKING, Protocol

from ..errors.handling import log_error
from ..errors.internal import InternalError
from ..logs.logger import logger
from ..storage.models import RoomRules
from .models import (
    Event,
    EventKind,
    JoinEvent,
    MessageEvent,
    PartEvent,
    PingEvent,
    RoomstateEvent,
    UsernoticeEvent,
    UserstateEvent,
)
from .parser import parse_line, split_frame

if TYPE_CHECKING:  # pragma: no cover
    from ..storage.protocols import ChannelStore
    from .session import IRCSession


class MessageConsumer(Protocol):
    """Anything that wants every chat message (command registry, link cache)."""

    def __call__(self, event: MessageEvent) -> Awaitable[object]: ...


class IRCDispatcher:
    """Routes parsed events in arrival order.

    PING and ROOMSTATE are handled inline so their effects are ordered with
    the stream. Chat messages fan out to the consumers as tracked tasks so a
    slow API or store call never holds up the next PONG.
    """

    def __init__(
        self,
        session: IRCSession,
        channel_store: ChannelStore,
        consumers: Iterable[MessageConsumer] = (),
        ignored_users: Iterable[str] = (),
    ) -> None:
        self.session = session
        self.channel_store = channel_store
        self.consumers: list[MessageConsumer] = list(consumers)
        self.ignored_users = frozenset(u.lower() for u in ignored_users)
        self._tasks: set[asyncio.Task[None]] = set()
        session.dispatcher = self

    def add_consumer(self, consumer: MessageConsumer) -> None:
        self.consumers.append(consumer)

    async def process_incoming_data(self, buffer: str, new_data: str) -> str:
        lines, buffer = split_frame(buffer + new_data)
        for line in lines:
            await self.handle_line(line.strip())
        return buffer

    async def handle_line(self, raw_message: str) -> None:
        event = parse_line(raw_message)
        if event.kind is not EventKind.PING:
            logger.log_event(
                "irc", "raw", level=logging.DEBUG, user=self.session.nick, raw=raw_message
            )
        await self.route(event)

    async def route(self, event: Event) -> None:  # noqa: C901
        match event.kind:
            case EventKind.PING:
                await self._handle_ping(event)
            case EventKind.MESSAGE:
                self._handle_message(event)
            case EventKind.ROOMSTATE:
                await self._handle_roomstate(event)
            case EventKind.RECONNECT:
                self._handle_reconnect()
            case EventKind.USERSTATE:
                self.on_userstate(event)
            case EventKind.USERNOTICE:
                self.on_usernotice(event)
            case EventKind.JOIN:
                self.on_join(event)
            case EventKind.PART:
                self.on_part(event)
            case _:
                logger.log_event(
                    "irc",
                    "unhandled_event",
                    level=logging.DEBUG,
                    user=self.session.nick,
                    verb=getattr(event, "verb", event.kind.value),
                )

    async def _handle_ping(self, event: PingEvent) -> None:
        if not await self.session.pong(event.source):
            return
        logger.log_event(
            "irc", "pong_sent", level=logging.DEBUG, user=self.session.nick, server=event.source
        )

    def _handle_message(self, event: MessageEvent) -> None:
        logger.log_event(
            "irc",
            "privmsg",
            level=logging.DEBUG,
            human=f"{event.display_name}: {event.message}",
            user=self.session.nick,
            channel=event.channel,
            author=event.user_name,
        )
        if event.user_name in self.ignored_users:
            return
        for consumer in self.consumers:
            self._spawn(consumer(event), event)

    async def _handle_roomstate(self, event: RoomstateEvent) -> None:
        rules = RoomRules(
            emote_only=event.emote_only,
            subs_only=event.subs_only,
            followers_only=event.followers_only,
            slow=event.slow,
            r9k=event.r9k,
        )
        try:
            await self.channel_store.update_room_rules(event.room_id, rules)
        except InternalError as e:
            log_error("Room rule update failed", e, {"room_id": event.room_id})
            return
        logger.log_event(
            "irc", "roomstate", level=logging.DEBUG, channel=event.channel, room_id=event.room_id
        )

    def _handle_reconnect(self) -> None:
        logger.log_event("irc", "reconnect_notice", level=logging.WARNING, user=self.session.nick)
        self.session.request_reconnect("server requested reconnect")

    # Hooks for verbs the bot does not act on yet.

    def on_userstate(self, event: UserstateEvent) -> None:
        logger.log_event("irc", "userstate", level=logging.DEBUG, channel=event.channel)

    def on_usernotice(self, event: UsernoticeEvent) -> None:
        logger.log_event(
            "irc",
            "usernotice",
            level=logging.DEBUG,
            channel=event.channel,
            notice_type=event.notice_type,
        )

    def on_join(self, event: JoinEvent) -> None:
        logger.log_event(
            "irc", "join_seen", level=logging.DEBUG, channel=event.channel, joined=event.user_name
        )

    def on_part(self, event: PartEvent) -> None:
        logger.log_event(
            "irc", "part_seen", level=logging.DEBUG, channel=event.channel, parted=event.user_name
        )

    # Task tracking -------------------------------------------------------

    def _spawn(self, work: Awaitable[object], event: MessageEvent) -> None:
        task = asyncio.create_task(self._guard(work, event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guard(self, work: Awaitable[object], event: MessageEvent) -> None:
        try:
            await work
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "irc",
                "consumer_error",
                level=logging.ERROR,
                channel=event.channel,
                error=str(e),
                error_type=type(e).__name__,
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight consumer task (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
