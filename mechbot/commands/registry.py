"""Command registration and gated dispatch.

At most one callback fires per chat message: the first registered command
whose trigger matches owns the message, whether or not its gates pass.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..constants import ARGUMENT_PREFIX, COMMAND_PREFIX
from ..errors.handling import log_error
from ..logs.logger import logger
from ..storage.models import Rank
from .arguments import extract_arguments
from .models import ArgumentSpec, Command, CommandCallback, DeniedCallback, GateFailure
from .visibility import LiveStatusProvider, is_channel_silenced

if TYPE_CHECKING:  # pragma: no cover
    from ..irc.models import MessageEvent
    from ..storage.protocols import ChannelStore, UserStore


@dataclass(slots=True)
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


def _normalize_channels(channels: Iterable[str]) -> frozenset[str]:
    return frozenset(c.strip().lstrip("#").lower() for c in channels if c and c.strip())


class CommandRegistry:
    def __init__(
        self,
        user_store: UserStore,
        channel_store: ChannelStore,
        live_status: LiveStatusProvider,
        *,
        command_prefix: str = COMMAND_PREFIX,
        argument_prefix: str = ARGUMENT_PREFIX,
    ) -> None:
        self.user_store = user_store
        self.channel_store = channel_store
        self.live_status = live_status
        self.command_prefix = command_prefix
        self.argument_prefix = argument_prefix
        self._commands: list[Command] = []
        self._locks: dict[tuple[int, int], _KeyLock] = {}

    @property
    def commands(self) -> tuple[Command, ...]:
        return tuple(self._commands)

    def register(
        self,
        triggers: Iterable[str] | str,
        callback: CommandCallback,
        *,
        rank: Rank = Rank.DEFAULT,
        cooldown_ms: int = 0,
        whitelist: Iterable[str] = (),
        blacklist: Iterable[str] = (),
        arguments: Mapping[str, ArgumentSpec] | None = None,
        on_denied: DeniedCallback | None = None,
    ) -> Command:
        if isinstance(triggers, str):
            triggers = (triggers,)
        ordered = [t.strip().lower() for t in triggers if t and t.strip()]
        command = Command(
            triggers=frozenset(ordered),
            callback=callback,
            rank=rank,
            cooldown_ms=cooldown_ms,
            whitelist=_normalize_channels(whitelist),
            blacklist=_normalize_channels(blacklist),
            arguments=dict(arguments or {}),
            on_denied=on_denied,
            name=ordered[0] if ordered else "",
        )
        self._commands.append(command)
        logger.log_event(
            "command",
            "registered",
            level=logging.DEBUG,
            command=command.name,
            rank=rank.name,
            cooldown_ms=cooldown_ms,
        )
        return command

    def command(
        self, *triggers: str, **options: Any
    ) -> Callable[[CommandCallback], CommandCallback]:
        """Decorator form of ``register``."""

        def decorator(fn: CommandCallback) -> CommandCallback:
            self.register(triggers, fn, **options)
            return fn

        return decorator

    def find(self, trigger: str) -> Command | None:
        wanted = trigger.strip().lower()
        if wanted.startswith(self.command_prefix):
            wanted = wanted[len(self.command_prefix) :]
        for command in self._commands:
            if wanted in command.triggers:
                return command
        return None

    def _match(self, head: str) -> Command | None:
        for command in self._commands:
            if command.matches(head, self.command_prefix):
                return command
        return None

    async def dispatch(self, event: MessageEvent) -> Command | None:
        """Run the command the message triggers, if its gates allow.

        Returns the command whose callback fired, None otherwise.
        """
        tokens = event.message.split()
        if not tokens:
            return None
        command = self._match(tokens[0].lower())
        if command is None:
            return None

        async with self._serialized((event.room_id, event.user_id)):
            failure = await self._check_gates(command, event)
            if failure is None and command.cooldown_ms > 0:
                command.cooldowns.set_cooldown(event.room_id, event.user_id, command.cooldown_ms)

        if failure is not None:
            await self._deny(command, event, failure)
            return None

        args = extract_arguments(tokens, command.arguments, self.argument_prefix)
        logger.log_event(
            "command",
            "execute",
            channel=event.channel,
            command=command.name,
            author=event.user_name,
        )
        await self._call(command.callback, event, args, command=command.name)
        return command

    async def _check_gates(self, command: Command, event: MessageEvent) -> GateFailure | None:
        try:
            return await self._evaluate_gates(command, event)
        except Exception as e:  # noqa: BLE001
            log_error(
                "Command gate evaluation failed",
                e,
                {"command": command.name, "channel": event.channel, "user_id": event.user_id},
            )
            return GateFailure.ERROR

    async def _evaluate_gates(self, command: Command, event: MessageEvent) -> GateFailure | None:
        user = await self.user_store.find_user(event.user_id)
        user_rank = user.rank if user is not None else Rank.DEFAULT
        if command.rank > user_rank:
            return GateFailure.RANK
        if command.cooldowns.is_on_cooldown(event.room_id, event.user_id):
            return GateFailure.COOLDOWN
        channel_failure = command.channel_allowed(event.channel)
        if channel_failure is not None:
            return channel_failure
        if await is_channel_silenced(event.room_id, self.channel_store, self.live_status):
            return GateFailure.LIVE
        return None

    async def _deny(self, command: Command, event: MessageEvent, failure: GateFailure) -> None:
        logger.log_event(
            "command",
            "denied",
            level=logging.DEBUG,
            channel=event.channel,
            command=command.name,
            author=event.user_name,
            reason=failure.name,
        )
        if failure is GateFailure.ERROR or command.on_denied is None:
            return
        await self._call(command.on_denied, event, failure, command=command.name)

    async def _call(self, handler: Callable[..., Any], *args: Any, command: str) -> None:
        try:
            if inspect.iscoroutinefunction(handler):
                await handler(*args)
            else:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "command",
                "callback_error",
                level=logging.ERROR,
                command=command,
                error=str(e),
                error_type=type(e).__name__,
            )

    @asynccontextmanager
    async def _serialized(self, key: tuple[int, int]) -> AsyncIterator[None]:
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._locks.pop(key, None)

    @property
    def active_locks(self) -> int:
        return len(self._locks)
