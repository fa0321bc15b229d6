"""Async store interfaces consumed by the session, registry and link cache."""

from __future__ import annotations

from typing import Protocol

from .models import ChannelRecord, LinkPost, RoomRules, UserRecord


class ChannelStore(Protocol):
    async def find_channel(self, channel_id: int) -> ChannelRecord | None: ...

    async def find_connected_channels(self) -> list[ChannelRecord]: ...

    async def find_or_create_channel(self, channel_id: int, name: str) -> ChannelRecord: ...

    async def save_channel(self, record: ChannelRecord) -> None: ...

    async def update_room_rules(self, room_id: int, rules: RoomRules) -> RoomRules: ...

    async def get_room_rules(self, room_id: int) -> RoomRules | None: ...


class UserStore(Protocol):
    async def find_user(self, user_id: int) -> UserRecord | None: ...

    async def find_or_create_user(self, user_id: int, name: str) -> UserRecord: ...

    async def save_user(self, record: UserRecord) -> None: ...


class LinkPostStore(Protocol):
    async def find_or_create_link_post(self, post: LinkPost) -> tuple[LinkPost, bool]:
        """Return the stored post for (room, link) and whether it was just created."""
        ...

    async def delete_link_posts_older_than(self, cutoff: float) -> int: ...


class Store(ChannelStore, UserStore, LinkPostStore, Protocol):
    """Everything the application needs from one backing store."""

    async def open(self) -> None: ...

    async def close(self) -> None: ...
