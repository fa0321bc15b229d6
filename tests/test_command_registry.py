"""
Tests for gated command dispatch
"""

import asyncio
import logging

import pytest

from mechbot.commands.models import ArgumentSpec, Arity, GateFailure
from mechbot.commands.registry import CommandRegistry
from mechbot.errors.internal import NetworkError
from mechbot.storage.models import ChannelRecord, Rank, UserRecord
from tests.fixtures.fakes import make_message


class Recorder:
    def __init__(self) -> None:
        self.calls = []

    async def __call__(self, event, args):
        self.calls.append((event, args))


class DenialRecorder:
    def __init__(self) -> None:
        self.failures = []

    def __call__(self, event, failure):
        self.failures.append(failure)


async def _set_rank(store, user_id: int, rank: Rank) -> None:
    await store.save_user(UserRecord(id=user_id, name=f"user{user_id}", rank=rank))


class TestMatching:
    @pytest.mark.asyncio
    async def test_prefixed_trigger_fires_once(self, registry):
        cb = Recorder()
        registry.register("ping", cb)
        fired = await registry.dispatch(make_message("$ping"))
        assert fired is not None and fired.name == "ping"
        assert len(cb.calls) == 1

    @pytest.mark.asyncio
    async def test_trigger_is_case_insensitive_and_aliases_work(self, registry):
        cb = Recorder()
        registry.register(("hey", "hi"), cb)
        await registry.dispatch(make_message("$HI there"))
        assert len(cb.calls) == 1

    @pytest.mark.asyncio
    async def test_no_prefix_or_unknown_trigger_is_ignored(self, registry):
        cb = Recorder()
        registry.register("ping", cb)
        assert await registry.dispatch(make_message("ping")) is None
        assert await registry.dispatch(make_message("$pong")) is None
        assert await registry.dispatch(make_message("   ")) is None
        assert cb.calls == []

    @pytest.mark.asyncio
    async def test_first_match_owns_message_even_when_denied(self, registry):
        first, second = Recorder(), Recorder()
        registry.register("x", first, rank=Rank.ADMIN)
        registry.register("x", second)
        assert await registry.dispatch(make_message("$x")) is None
        assert first.calls == [] and second.calls == []

    @pytest.mark.asyncio
    async def test_overlapping_triggers_fire_only_first_registered(self, registry):
        first, second = Recorder(), Recorder()
        registry.register(("roll", "r"), first)
        registry.register(("r", "dice"), second)
        fired = await registry.dispatch(make_message("$r 20"))
        assert fired is not None and fired.name == "roll"
        assert len(first.calls) == 1
        assert second.calls == []
        await registry.dispatch(make_message("$dice"))
        assert len(first.calls) == 1
        assert len(second.calls) == 1

    @pytest.mark.asyncio
    async def test_callback_receives_parsed_arguments(self, registry):
        cb = Recorder()
        registry.register("roll", cb, arguments={"max": ArgumentSpec(("m",), Arity.NUMBER)})
        await registry.dispatch(make_message("$roll -m 50 extra"))
        _, args = cb.calls[0]
        assert args["max"].value == 50
        assert args["main"].value == "extra"

    @pytest.mark.asyncio
    async def test_sync_callback_and_decorator_form(self, registry):
        seen = []

        @registry.command("sync")
        def handler(event, args):
            seen.append(event.message)

        await registry.dispatch(make_message("$sync now"))
        assert seen == ["$sync now"]

    def test_find_accepts_prefix(self, registry):
        cmd = registry.register(("hey", "hi"), Recorder())
        assert registry.find("$hi") is cmd
        assert registry.find("HEY") is cmd
        assert registry.find("nope") is None

    @pytest.mark.asyncio
    async def test_custom_prefix(self, store, api):
        reg = CommandRegistry(store, store, api, command_prefix="!")
        cb = Recorder()
        reg.register("ping", cb)
        await reg.dispatch(make_message("$ping"))
        await reg.dispatch(make_message("!ping"))
        assert len(cb.calls) == 1


class TestGates:
    @pytest.mark.asyncio
    async def test_rank_gate(self, registry, store):
        cb, denied = Recorder(), DenialRecorder()
        registry.register("admin", cb, rank=Rank.ADMIN, on_denied=denied)
        await registry.dispatch(make_message("$admin"))
        assert denied.failures == [GateFailure.RANK]
        await _set_rank(store, 20, Rank.ADMIN)
        await registry.dispatch(make_message("$admin"))
        assert len(cb.calls) == 1

    @pytest.mark.asyncio
    async def test_banned_user_cannot_run_default_command(self, registry, store):
        cb = Recorder()
        registry.register("ping", cb)
        await _set_rank(store, 20, Rank.BANNED)
        await registry.dispatch(make_message("$ping"))
        assert cb.calls == []

    @pytest.mark.asyncio
    async def test_cooldown_gate_is_per_user(self, registry):
        cb, denied = Recorder(), DenialRecorder()
        registry.register("ping", cb, cooldown_ms=10_000, on_denied=denied)
        await registry.dispatch(make_message("$ping"))
        await registry.dispatch(make_message("$ping"))
        await registry.dispatch(make_message("$ping", user_name="bar", user_id=30))
        assert len(cb.calls) == 2
        assert denied.failures == [GateFailure.COOLDOWN]

    @pytest.mark.asyncio
    async def test_denied_attempt_does_not_arm_cooldown(self, registry, store):
        cb = Recorder()
        registry.register("admin", cb, rank=Rank.ADMIN, cooldown_ms=10_000)
        await registry.dispatch(make_message("$admin"))
        await _set_rank(store, 20, Rank.ADMIN)
        await registry.dispatch(make_message("$admin"))
        assert len(cb.calls) == 1

    @pytest.mark.asyncio
    async def test_whitelist_and_blacklist(self, registry):
        only, never = Recorder(), DenialRecorder()
        registry.register("w", only, whitelist=["#Allowed"], on_denied=never)
        registry.register("b", only, blacklist=["chan"], on_denied=never)
        await registry.dispatch(make_message("$w"))
        await registry.dispatch(make_message("$b"))
        await registry.dispatch(make_message("$w", channel="allowed"))
        assert never.failures == [GateFailure.WHITELIST, GateFailure.BLACKLIST]
        assert len(only.calls) == 1

    @pytest.mark.asyncio
    async def test_live_gate_silences_offline_only_channels(self, registry, store, api):
        cb, denied = Recorder(), DenialRecorder()
        registry.register("ping", cb, on_denied=denied)
        api.live.add(10)
        await registry.dispatch(make_message("$ping"))
        assert denied.failures == [GateFailure.LIVE]
        await store.save_channel(ChannelRecord(id=10, name="chan", offline_only=False))
        await registry.dispatch(make_message("$ping"))
        assert len(cb.calls) == 1

    @pytest.mark.asyncio
    async def test_gate_error_fails_closed(self, registry, api, caplog):
        cb, denied = Recorder(), DenialRecorder()
        registry.register("ping", cb, on_denied=denied)
        api.error = NetworkError("helix down")
        with caplog.at_level(logging.ERROR):
            assert await registry.dispatch(make_message("$ping")) is None
        assert cb.calls == []
        assert denied.failures == []
        assert "helix down" in caplog.text

    @pytest.mark.asyncio
    async def test_callback_error_is_logged_not_raised(self, registry, caplog):
        async def boom(event, args):
            raise RuntimeError("kaboom")

        registry.register("boom", boom)
        with caplog.at_level(logging.ERROR):
            fired = await registry.dispatch(make_message("$boom"))
        assert fired is not None
        assert "kaboom" in caplog.text


class SlowLiveStatus:
    """Suspends inside the gate so concurrent dispatches interleave."""

    async def is_channel_live(self, channel_id: int) -> bool:
        await asyncio.sleep(0.01)
        return False


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_same_user_fires_once(self, store):
        reg = CommandRegistry(store, store, SlowLiveStatus())
        cb = Recorder()
        reg.register("ping", cb, cooldown_ms=10_000)
        results = await asyncio.gather(*(reg.dispatch(make_message("$ping")) for _ in range(5)))
        assert len(cb.calls) == 1
        assert sum(r is not None for r in results) == 1
        assert reg.active_locks == 0

    @pytest.mark.asyncio
    async def test_different_users_are_not_serialized_against_each_other(self, store):
        reg = CommandRegistry(store, store, SlowLiveStatus())
        cb = Recorder()
        reg.register("ping", cb, cooldown_ms=10_000)
        await asyncio.gather(
            reg.dispatch(make_message("$ping", user_id=1)),
            reg.dispatch(make_message("$ping", user_id=2)),
        )
        assert len(cb.calls) == 2
        assert reg.active_locks == 0
