"""Persistent state: channels, user ranks and link posts."""

from .memory import MemoryStore  # noqa: F401
from .models import ChannelRecord, LinkPost, Rank, RoomRules, UserRecord  # noqa: F401
from .protocols import ChannelStore, LinkPostStore, Store, UserStore  # noqa: F401
from .sqlite import SQLiteStore  # noqa: F401

__all__ = [
    "ChannelRecord",
    "ChannelStore",
    "LinkPost",
    "LinkPostStore",
    "MemoryStore",
    "Rank",
    "RoomRules",
    "SQLiteStore",
    "Store",
    "UserRecord",
    "UserStore",
]
