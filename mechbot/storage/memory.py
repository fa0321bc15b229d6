"""In-process store used in tests and for running without a database file."""

from __future__ import annotations

import asyncio
from dataclasses import replace

from .models import ChannelRecord, LinkPost, RoomRules, UserRecord


class MemoryStore:
    """Channel, user and link-post store backed by dictionaries.

    Records are copied on the way in and out so callers can never mutate
    stored state without going through ``save_*``.
    """

    def __init__(self) -> None:
        self._channels: dict[int, ChannelRecord] = {}
        self._users: dict[int, UserRecord] = {}
        self._links: dict[tuple[int, str], LinkPost] = {}
        self._room_rules: dict[int, RoomRules] = {}
        self._lock = asyncio.Lock()

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None

    # Channels ------------------------------------------------------------

    async def find_channel(self, channel_id: int) -> ChannelRecord | None:
        record = self._channels.get(channel_id)
        return replace(record) if record else None

    async def find_connected_channels(self) -> list[ChannelRecord]:
        return [replace(r) for r in self._channels.values() if r.connected]

    async def find_or_create_channel(self, channel_id: int, name: str) -> ChannelRecord:
        async with self._lock:
            record = self._channels.get(channel_id)
            if record is None:
                record = ChannelRecord(id=channel_id, name=name.lower())
                self._channels[channel_id] = record
            return replace(record)

    async def save_channel(self, record: ChannelRecord) -> None:
        async with self._lock:
            self._channels[record.id] = replace(record)

    async def update_room_rules(self, room_id: int, rules: RoomRules) -> RoomRules:
        async with self._lock:
            current = self._room_rules.get(room_id, RoomRules())
            merged = current.merged(rules)
            self._room_rules[room_id] = merged
            return merged

    async def get_room_rules(self, room_id: int) -> RoomRules | None:
        return self._room_rules.get(room_id)

    # Users ---------------------------------------------------------------

    async def find_user(self, user_id: int) -> UserRecord | None:
        record = self._users.get(user_id)
        return replace(record) if record else None

    async def find_or_create_user(self, user_id: int, name: str) -> UserRecord:
        async with self._lock:
            record = self._users.get(user_id)
            if record is None:
                record = UserRecord(id=user_id, name=name.lower())
                self._users[user_id] = record
            return replace(record)

    async def save_user(self, record: UserRecord) -> None:
        async with self._lock:
            self._users[record.id] = replace(record)

    # Link posts ----------------------------------------------------------

    async def find_or_create_link_post(self, post: LinkPost) -> tuple[LinkPost, bool]:
        key = (post.room_id, post.link)
        async with self._lock:
            existing = self._links.get(key)
            if existing is not None:
                return existing, False
            self._links[key] = post
            return post, True

    async def delete_link_posts_older_than(self, cutoff: float) -> int:
        async with self._lock:
            stale = [k for k, p in self._links.items() if p.posted_at < cutoff]
            for key in stale:
                del self._links[key]
            return len(stale)
