import pytest

from mechbot.commands.visibility import is_channel_silenced
from mechbot.storage.models import ChannelRecord


@pytest.mark.asyncio
async def test_unknown_channel_is_offline_only(store, api):
    api.live.add(10)
    assert await is_channel_silenced(10, store, api) is True
    api.live.clear()
    assert await is_channel_silenced(10, store, api) is False


@pytest.mark.asyncio
async def test_channel_allowing_live_chat_skips_live_lookup(store, api):
    await store.save_channel(ChannelRecord(id=10, name="chan", offline_only=False))
    api.live.add(10)
    assert await is_channel_silenced(10, store, api) is False
    assert api.live_checks == []
