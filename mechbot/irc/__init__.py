"""Chat protocol layer: parsing, outbound frames, session and routing."""

from .dispatcher import IRCDispatcher  # noqa: F401
from .models import (  # noqa: F401
    Event,
    EventKind,
    JoinEvent,
    MessageEvent,
    PartEvent,
    PingEvent,
    ReconnectEvent,
    RoomstateEvent,
    SessionState,
    UnknownEvent,
    UsernoticeEvent,
    UserstateEvent,
)
from .parser import parse_line, split_frame  # noqa: F401
from .session import IRCSession  # noqa: F401
from .transport import Transport, WebSocketTransport  # noqa: F401

__all__ = [
    "Event",
    "EventKind",
    "IRCDispatcher",
    "IRCSession",
    "JoinEvent",
    "MessageEvent",
    "PartEvent",
    "PingEvent",
    "ReconnectEvent",
    "RoomstateEvent",
    "SessionState",
    "Transport",
    "UnknownEvent",
    "UsernoticeEvent",
    "UserstateEvent",
    "WebSocketTransport",
    "parse_line",
    "split_frame",
]
