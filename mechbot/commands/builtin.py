"""Commands every deployment carries: greetings and channel/rank administration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from ..errors.handling import log_error
from ..errors.internal import InternalError
from ..logs.logger import logger
from ..storage.models import Rank
from .models import ArgumentSpec, Arity, GateFailure, ParsedArgs

if TYPE_CHECKING:  # pragma: no cover
    from ..api.twitch import TwitchAPI
    from ..irc.models import MessageEvent
    from ..storage.protocols import ChannelStore, UserStore
    from .registry import CommandRegistry


class ChatClient(Protocol):
    async def send_message(self, channel: str, text: str) -> bool: ...

    async def join(self, channel: str) -> bool: ...

    async def part(self, channel: str) -> bool: ...


@dataclass(slots=True)
class BuiltinContext:
    api: TwitchAPI
    channels: ChannelStore
    users: UserStore
    chat: ChatClient
    registry: CommandRegistry
    source_url: str | None = None


GREETING_COOLDOWN_MS = 10_000
CHANNELS_COOLDOWN_MS = 10_000
INVALID_CHANNEL = "/me invalid channel."


def _first_word(args: ParsedArgs) -> str:
    main = args["main"].value
    if not isinstance(main, str):
        return ""
    return main.split()[0].lstrip("#").lower()


def register_builtin_commands(registry: CommandRegistry, ctx: BuiltinContext) -> None:
    chat = ctx.chat

    async def hey(event: MessageEvent, args: ParsedArgs) -> None:
        await chat.send_message(event.channel, f"/me FeelsOkayMan Hey {event.display_name}")

    async def source(event: MessageEvent, args: ParsedArgs) -> None:
        await chat.send_message(event.channel, ctx.source_url or "")

    async def join(event: MessageEvent, args: ParsedArgs) -> None:
        login = _first_word(args)
        user = await ctx.api.resolve_user_by_login(login) if login else None
        if user is None:
            await chat.send_message(event.channel, INVALID_CHANNEL)
            return
        record = await ctx.channels.find_or_create_channel(user.id, user.login)
        record.connected = True
        await ctx.channels.save_channel(record)
        await chat.join(user.login)
        logger.log_event("command", "channel_joined", channel=user.login, by=event.user_name)
        await chat.send_message(event.channel, f"/me joined #{user.login}")

    async def part(event: MessageEvent, args: ParsedArgs) -> None:
        login = _first_word(args)
        user = await ctx.api.resolve_user_by_login(login) if login else None
        if user is None:
            await chat.send_message(event.channel, INVALID_CHANNEL)
            return
        record = await ctx.channels.find_channel(user.id)
        if record is not None:
            record.connected = False
            await ctx.channels.save_channel(record)
        await chat.part(user.login)
        logger.log_event("command", "channel_parted", channel=user.login, by=event.user_name)
        if event.channel != user.login:
            await chat.send_message(event.channel, f"/me left #{user.login}")

    async def cooldown(event: MessageEvent, args: ParsedArgs) -> None:
        target = ctx.registry.find(_first_word(args))
        ms = args["ms"].value
        if target is None or not isinstance(ms, int) or ms < 0:
            await chat.send_message(event.channel, "/me usage: $cooldown <command> -ms <milliseconds>")
            return
        target.cooldown_ms = ms
        if ms == 0:
            target.cooldowns.clear()
        logger.log_event("command", "cooldown_changed", command=target.name, cooldown_ms=ms)
        await chat.send_message(event.channel, f"/me ${target.name} cooldown is now {ms}ms")

    async def rank(event: MessageEvent, args: ParsedArgs) -> None:
        login = _first_word(args)
        level = args["level"].value
        new_rank = Rank.from_name(level) if isinstance(level, str) else None
        if not login or new_rank is None:
            names = ", ".join(r.name.lower() for r in Rank)
            await chat.send_message(event.channel, f"/me usage: $rank <user> -level <{names}>")
            return
        user = await ctx.api.resolve_user_by_login(login)
        if user is None:
            await chat.send_message(event.channel, "/me invalid user.")
            return
        record = await ctx.users.find_or_create_user(user.id, user.login)
        record.rank = new_rank
        await ctx.users.save_user(record)
        logger.log_event("command", "rank_changed", target=user.login, rank=new_rank.name)
        await chat.send_message(event.channel, f"/me {user.login} is now {new_rank.name.lower()}")

    async def channels(event: MessageEvent, args: ParsedArgs) -> None:
        connected = await ctx.channels.find_connected_channels()
        names = ", ".join(sorted(c.name for c in connected)) or "none"
        await chat.send_message(event.channel, f"/me connected: {names}")

    def report_denied(event: MessageEvent, failure: GateFailure) -> None:
        logger.log_event(
            "command",
            "admin_denied",
            level=logging.INFO,
            channel=event.channel,
            author=event.user_name,
            reason=failure.name,
        )

    registry.register(("hey", "hello", "hi"), hey, cooldown_ms=GREETING_COOLDOWN_MS)
    if ctx.source_url:
        registry.register(
            ("source", "code", "repo", "git"), source, cooldown_ms=GREETING_COOLDOWN_MS
        )
    registry.register("join", join, rank=Rank.ADMIN, on_denied=report_denied)
    registry.register(("part", "leave"), part, rank=Rank.ADMIN, on_denied=report_denied)
    registry.register(
        "cooldown",
        cooldown,
        rank=Rank.ADMIN,
        arguments={"ms": ArgumentSpec(("ms",), Arity.NUMBER)},
        on_denied=report_denied,
    )
    registry.register(
        "rank",
        rank,
        rank=Rank.OWNER,
        arguments={"level": ArgumentSpec(("level", "l"), Arity.STRING)},
        on_denied=report_denied,
    )
    registry.register("channels", channels, rank=Rank.TRUSTED, cooldown_ms=CHANNELS_COOLDOWN_MS)


async def seed_defaults(
    channels: ChannelStore,
    users: UserStore,
    *,
    owner_id: int,
    bot_id: int,
    bot_nick: str,
) -> None:
    """Rank the owner and the bot OWNER and keep the bot's own channel joined."""
    try:
        record = await channels.find_or_create_channel(bot_id, bot_nick)
        record.connected = True
        await channels.save_channel(record)
        for user_id, name in ((owner_id, ""), (bot_id, bot_nick)):
            user = await users.find_or_create_user(user_id, name or str(user_id))
            user.rank = Rank.OWNER
            await users.save_user(user)
    except InternalError as e:
        log_error("Seeding default ranks failed", e)
        raise
    logger.log_event("app", "defaults_seeded", owner_id=owner_id, bot_id=bot_id)
