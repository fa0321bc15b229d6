"""
Behavioural tests shared by every store backend
"""

import pytest
import pytest_asyncio

from mechbot.errors.internal import StoreError
from mechbot.storage.memory import MemoryStore
from mechbot.storage.models import ChannelRecord, LinkPost, Rank, RoomRules, UserRecord
from mechbot.storage.sqlite import SQLiteStore


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def any_store(request, tmp_path):
    if request.param == "memory":
        s = MemoryStore()
    else:
        s = SQLiteStore(str(tmp_path / "bot.db"))
    await s.open()
    yield s
    await s.close()


def _post(link: str, poster_id: int, posted_at: float, room_id: int = 10) -> LinkPost:
    return LinkPost(
        room_id=room_id,
        link=link,
        poster_id=poster_id,
        poster_name=f"user{poster_id}",
        posted_at=posted_at,
    )


class TestChannels:
    @pytest.mark.asyncio
    async def test_find_or_create_then_save(self, any_store):
        created = await any_store.find_or_create_channel(10, "Chan")
        assert created == ChannelRecord(id=10, name="chan", connected=False, offline_only=True)
        created.connected = True
        # Not persisted until saved.
        assert (await any_store.find_channel(10)).connected is False
        await any_store.save_channel(created)
        assert (await any_store.find_channel(10)).connected is True

    @pytest.mark.asyncio
    async def test_find_or_create_keeps_existing(self, any_store):
        await any_store.save_channel(ChannelRecord(id=10, name="chan", connected=True))
        again = await any_store.find_or_create_channel(10, "renamed")
        assert again.connected is True
        assert again.name == "chan"

    @pytest.mark.asyncio
    async def test_connected_channels(self, any_store):
        await any_store.save_channel(ChannelRecord(id=1, name="a", connected=True))
        await any_store.save_channel(ChannelRecord(id=2, name="b", connected=False))
        await any_store.save_channel(ChannelRecord(id=3, name="c", connected=True))
        names = sorted(c.name for c in await any_store.find_connected_channels())
        assert names == ["a", "c"]

    @pytest.mark.asyncio
    async def test_missing_channel(self, any_store):
        assert await any_store.find_channel(404) is None

    @pytest.mark.asyncio
    async def test_room_rules_merge_partial_updates(self, any_store):
        assert await any_store.get_room_rules(10) is None
        await any_store.update_room_rules(10, RoomRules(emote_only=False, slow=0))
        merged = await any_store.update_room_rules(10, RoomRules(slow=30))
        assert merged == RoomRules(emote_only=False, slow=30)
        assert await any_store.get_room_rules(10) == merged


class TestUsers:
    @pytest.mark.asyncio
    async def test_rank_round_trip(self, any_store):
        user = await any_store.find_or_create_user(20, "Foo")
        assert user.rank is Rank.DEFAULT
        user.rank = Rank.ADMIN
        await any_store.save_user(user)
        assert await any_store.find_user(20) == UserRecord(id=20, name="foo", rank=Rank.ADMIN)

    @pytest.mark.asyncio
    async def test_banned_rank_persists(self, any_store):
        await any_store.save_user(UserRecord(id=5, name="troll", rank=Rank.BANNED))
        assert (await any_store.find_user(5)).rank is Rank.BANNED


class TestLinkPosts:
    @pytest.mark.asyncio
    async def test_first_post_wins(self, any_store):
        first, created = await any_store.find_or_create_link_post(_post("https://a", 1, 100.0))
        assert created is True
        existing, created = await any_store.find_or_create_link_post(_post("https://a", 2, 200.0))
        assert created is False
        assert existing == first

    @pytest.mark.asyncio
    async def test_key_includes_room(self, any_store):
        await any_store.find_or_create_link_post(_post("https://a", 1, 100.0, room_id=1))
        _, created = await any_store.find_or_create_link_post(_post("https://a", 2, 100.0, room_id=2))
        assert created is True

    @pytest.mark.asyncio
    async def test_delete_older_than(self, any_store):
        await any_store.find_or_create_link_post(_post("https://old", 1, 100.0))
        await any_store.find_or_create_link_post(_post("https://new", 1, 500.0))
        assert await any_store.delete_link_posts_older_than(200.0) == 1
        _, created = await any_store.find_or_create_link_post(_post("https://old", 2, 600.0))
        assert created is True
        _, created = await any_store.find_or_create_link_post(_post("https://new", 2, 600.0))
        assert created is False


class TestSQLiteSpecifics:
    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path):
        path = str(tmp_path / "bot.db")
        first = SQLiteStore(path)
        await first.open()
        await first.save_user(UserRecord(id=1, name="owner", rank=Rank.OWNER))
        await first.close()

        second = SQLiteStore(path)
        await second.open()
        try:
            assert (await second.find_user(1)).rank is Rank.OWNER
        finally:
            await second.close()

    @pytest.mark.asyncio
    async def test_in_memory_database(self):
        s = SQLiteStore(":memory:")
        await s.open()
        try:
            await s.save_channel(ChannelRecord(id=1, name="a", connected=True))
            assert len(await s.find_connected_channels()) == 1
        finally:
            await s.close()

    @pytest.mark.asyncio
    async def test_use_before_open_raises_store_error(self):
        s = SQLiteStore(":memory:")
        with pytest.raises(StoreError):
            await s.find_user(1)
