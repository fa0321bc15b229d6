"""Records persisted by the stores."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Rank(IntEnum):
    """User privilege level. Ordered: a command's rank is a minimum."""

    BANNED = -1
    DEFAULT = 0
    TRUSTED = 1
    ADMIN = 2
    OWNER = 3

    @classmethod
    def from_name(cls, name: str) -> Rank | None:
        try:
            return cls[name.strip().upper()]
        except KeyError:
            return None


@dataclass(slots=True)
class ChannelRecord:
    id: int
    name: str
    connected: bool = False
    offline_only: bool = True


@dataclass(slots=True)
class UserRecord:
    id: int
    name: str
    rank: Rank = Rank.DEFAULT


@dataclass(frozen=True, slots=True)
class RoomRules:
    """Latest known chat rules of a room; None = never reported."""

    emote_only: bool | None = None
    subs_only: bool | None = None
    followers_only: int | None = None
    slow: int | None = None
    r9k: bool | None = None

    def merged(self, update: RoomRules) -> RoomRules:
        """Overlay a partial ROOMSTATE update onto the current rules."""
        return RoomRules(
            emote_only=self.emote_only if update.emote_only is None else update.emote_only,
            subs_only=self.subs_only if update.subs_only is None else update.subs_only,
            followers_only=(
                self.followers_only if update.followers_only is None else update.followers_only
            ),
            slow=self.slow if update.slow is None else update.slow,
            r9k=self.r9k if update.r9k is None else update.r9k,
        )


@dataclass(frozen=True, slots=True)
class LinkPost:
    room_id: int
    link: str
    poster_id: int
    poster_name: str
    posted_at: float  # unix seconds
