"""Whether the bot should stay quiet in a channel right now."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover
    from ..storage.protocols import ChannelStore


class LiveStatusProvider(Protocol):
    async def is_channel_live(self, channel_id: int) -> bool: ...


async def is_channel_silenced(
    room_id: int, channel_store: ChannelStore, live_status: LiveStatusProvider
) -> bool:
    """True when the channel only allows the bot while offline and is live.

    A channel without a record is treated as offline-only.
    """
    record = await channel_store.find_channel(room_id)
    offline_only = record.offline_only if record is not None else True
    if not offline_only:
        return False
    return await live_status.is_channel_live(room_id)
