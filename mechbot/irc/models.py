"""Typed chat events produced by the line parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TypeAlias


class EventKind(Enum):
    MESSAGE = "PRIVMSG"
    USERSTATE = "USERSTATE"
    USERNOTICE = "USERNOTICE"
    ROOMSTATE = "ROOMSTATE"
    RECONNECT = "RECONNECT"
    JOIN = "JOIN"
    PART = "PART"
    PING = "PING"
    UNKNOWN = "UNKNOWN"


class SessionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    OPEN = auto()
    RECONNECTING = auto()
    CLOSED = auto()


@dataclass(frozen=True, slots=True)
class MessageEvent:
    raw: str
    source: str
    id: str
    sent_at_ms: int
    room_id: int
    user_id: int
    user_name: str
    display_name: str
    color: str
    badges: dict[str, int]
    is_mod: bool
    is_subscriber: bool
    is_turbo: bool
    channel: str
    message: str
    kind: EventKind = field(default=EventKind.MESSAGE, init=False)


@dataclass(frozen=True, slots=True)
class UserstateEvent:
    raw: str
    source: str
    badges: dict[str, int]
    user_name: str
    display_name: str
    color: str
    is_mod: bool
    is_subscriber: bool
    is_turbo: bool
    channel: str
    kind: EventKind = field(default=EventKind.USERSTATE, init=False)


@dataclass(frozen=True, slots=True)
class UsernoticeEvent:
    raw: str
    source: str
    id: str
    sent_at_ms: int
    room_id: int
    user_id: int
    user_name: str
    display_name: str
    color: str
    badges: dict[str, int]
    is_mod: bool
    is_subscriber: bool
    is_turbo: bool
    notice_type: str
    system_message: str
    channel: str
    message: str
    kind: EventKind = field(default=EventKind.USERNOTICE, init=False)


@dataclass(frozen=True, slots=True)
class RoomstateEvent:
    """Room rule update. A rule is None when the line did not carry it."""

    raw: str
    source: str
    room_id: int
    channel: str
    emote_only: bool | None
    subs_only: bool | None
    followers_only: int | None  # minutes, -1 = disabled
    slow: int | None  # seconds
    r9k: bool | None
    kind: EventKind = field(default=EventKind.ROOMSTATE, init=False)


@dataclass(frozen=True, slots=True)
class ReconnectEvent:
    raw: str
    source: str
    kind: EventKind = field(default=EventKind.RECONNECT, init=False)


@dataclass(frozen=True, slots=True)
class JoinEvent:
    raw: str
    source: str
    channel: str
    user_name: str
    kind: EventKind = field(default=EventKind.JOIN, init=False)


@dataclass(frozen=True, slots=True)
class PartEvent:
    raw: str
    source: str
    channel: str
    user_name: str
    kind: EventKind = field(default=EventKind.PART, init=False)


@dataclass(frozen=True, slots=True)
class PingEvent:
    raw: str
    source: str
    kind: EventKind = field(default=EventKind.PING, init=False)


@dataclass(frozen=True, slots=True)
class UnknownEvent:
    raw: str
    source: str
    verb: str
    tags: dict[str, str]
    args: tuple[str, ...]
    kind: EventKind = field(default=EventKind.UNKNOWN, init=False)


Event: TypeAlias = (
    MessageEvent
    | UserstateEvent
    | UsernoticeEvent
    | RoomstateEvent
    | ReconnectEvent
    | JoinEvent
    | PartEvent
    | PingEvent
    | UnknownEvent
)
