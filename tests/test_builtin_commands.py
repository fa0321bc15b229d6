"""
Tests for the commands every deployment registers
"""

import logging

import pytest

from mechbot.commands.builtin import (
    INVALID_CHANNEL,
    BuiltinContext,
    register_builtin_commands,
    seed_defaults,
)
from mechbot.storage.models import ChannelRecord, Rank, UserRecord
from tests.fixtures.fakes import make_message


@pytest.fixture
def builtins(registry, store, api, chat):
    register_builtin_commands(
        registry,
        BuiltinContext(api=api, channels=store, users=store, chat=chat, registry=registry),
    )
    return registry


async def _rank(store, user_id: int, rank: Rank) -> None:
    await store.save_user(UserRecord(id=user_id, name=f"user{user_id}", rank=rank))


class TestGreeting:
    @pytest.mark.asyncio
    async def test_hey_replies_once_per_cooldown(self, builtins, chat):
        await builtins.dispatch(make_message("$hey"))
        await builtins.dispatch(make_message("$hi"))
        assert chat.messages == [("chan", "/me FeelsOkayMan Hey Foo")]

    @pytest.mark.asyncio
    async def test_source_only_when_configured(self, registry, store, api, chat):
        ctx = BuiltinContext(
            api=api,
            channels=store,
            users=store,
            chat=chat,
            registry=registry,
            source_url="https://example.test/mechbot",
        )
        register_builtin_commands(registry, ctx)
        await registry.dispatch(make_message("$git"))
        assert chat.texts == ["https://example.test/mechbot"]

    def test_source_absent_without_url(self, builtins):
        assert builtins.find("source") is None


class TestChannelAdministration:
    @pytest.mark.asyncio
    async def test_join_marks_channel_connected(self, builtins, store, chat):
        await _rank(store, 20, Rank.ADMIN)
        await builtins.dispatch(make_message("$join #Other"))
        record = await store.find_channel(40)
        assert record is not None and record.connected
        assert chat.joined == ["other"]
        assert chat.texts == ["/me joined #other"]

    @pytest.mark.asyncio
    async def test_join_unknown_channel(self, builtins, store, chat):
        await _rank(store, 20, Rank.ADMIN)
        await builtins.dispatch(make_message("$join nobody"))
        await builtins.dispatch(make_message("$join"))
        assert chat.texts == [INVALID_CHANNEL, INVALID_CHANNEL]
        assert chat.joined == []

    @pytest.mark.asyncio
    async def test_join_requires_admin(self, builtins, chat, caplog):
        with caplog.at_level(logging.INFO):
            await builtins.dispatch(make_message("$join other"))
        assert chat.joined == [] and chat.messages == []
        assert "lacks rank" in caplog.text

    @pytest.mark.asyncio
    async def test_part_from_other_channel_confirms(self, builtins, store, chat):
        await _rank(store, 20, Rank.ADMIN)
        await store.save_channel(ChannelRecord(id=40, name="other", connected=True))
        await builtins.dispatch(make_message("$leave other"))
        assert (await store.find_channel(40)).connected is False
        assert chat.parted == ["other"]
        assert chat.texts == ["/me left #other"]

    @pytest.mark.asyncio
    async def test_part_current_channel_is_silent(self, builtins, store, chat):
        await _rank(store, 20, Rank.ADMIN)
        await store.save_channel(ChannelRecord(id=10, name="chan", connected=True))
        await builtins.dispatch(make_message("$part chan"))
        assert chat.parted == ["chan"]
        assert chat.messages == []

    @pytest.mark.asyncio
    async def test_channels_lists_connected(self, builtins, store, chat):
        await _rank(store, 20, Rank.TRUSTED)
        await builtins.dispatch(make_message("$channels"))
        await store.save_channel(ChannelRecord(id=40, name="other", connected=True))
        await store.save_channel(ChannelRecord(id=10, name="chan", connected=True))
        await builtins.dispatch(make_message("$channels", user_id=30, user_name="bar"))
        assert chat.texts == ["/me connected: none"]
        await _rank(store, 30, Rank.TRUSTED)
        await builtins.dispatch(make_message("$channels", user_id=30, user_name="bar"))
        assert chat.texts[-1] == "/me connected: chan, other"


class TestCooldownAndRank:
    @pytest.mark.asyncio
    async def test_cooldown_changes_command(self, builtins, store, chat):
        await _rank(store, 20, Rank.ADMIN)
        await builtins.dispatch(make_message("$cooldown hey -ms 2500"))
        assert builtins.find("hey").cooldown_ms == 2500
        assert chat.texts == ["/me $hey cooldown is now 2500ms"]

    @pytest.mark.asyncio
    async def test_zero_cooldown_clears_active_entries(self, builtins, store, chat):
        await builtins.dispatch(make_message("$hey"))
        await _rank(store, 20, Rank.ADMIN)
        await builtins.dispatch(make_message("$cooldown hey -ms 0"))
        await builtins.dispatch(make_message("$hey"))
        assert chat.texts.count("/me FeelsOkayMan Hey Foo") == 2

    @pytest.mark.asyncio
    async def test_cooldown_usage(self, builtins, store, chat):
        await _rank(store, 20, Rank.ADMIN)
        await builtins.dispatch(make_message("$cooldown nope -ms 10"))
        await builtins.dispatch(make_message("$cooldown hey"))
        assert all(t.startswith("/me usage: $cooldown") for t in chat.texts)
        assert len(chat.texts) == 2

    @pytest.mark.asyncio
    async def test_owner_sets_rank(self, builtins, store, chat):
        await _rank(store, 20, Rank.OWNER)
        await builtins.dispatch(make_message("$rank bar -l trusted"))
        assert (await store.find_user(30)).rank is Rank.TRUSTED
        assert chat.texts == ["/me bar is now trusted"]

    @pytest.mark.asyncio
    async def test_rank_requires_owner(self, builtins, store, chat):
        await _rank(store, 20, Rank.ADMIN)
        await builtins.dispatch(make_message("$rank bar -level admin"))
        assert await store.find_user(30) is None
        assert chat.messages == []

    @pytest.mark.asyncio
    async def test_rank_usage_and_unknown_user(self, builtins, store, chat):
        await _rank(store, 20, Rank.OWNER)
        await builtins.dispatch(make_message("$rank bar -level emperor"))
        await builtins.dispatch(make_message("$rank ghost -level admin"))
        assert chat.texts[0].startswith("/me usage: $rank")
        assert chat.texts[1] == "/me invalid user."


@pytest.mark.asyncio
async def test_seed_defaults(store):
    await seed_defaults(store, store, owner_id=1001, bot_id=2002, bot_nick="mechbot")
    await seed_defaults(store, store, owner_id=1001, bot_id=2002, bot_nick="mechbot")
    assert [c.name for c in await store.find_connected_channels()] == ["mechbot"]
    assert (await store.find_user(1001)).rank is Rank.OWNER
    assert (await store.find_user(2002)).rank is Rank.OWNER
