"""Command definitions and the values passed to command callbacks."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TypeAlias

from ..irc.models import MessageEvent
from ..storage.models import Rank
from .cooldown import CooldownTable


class Arity(Enum):
    NONE = auto()  # bare flag
    NUMBER = auto()
    STRING = auto()


@dataclass(frozen=True, slots=True)
class ArgumentSpec:
    aliases: tuple[str, ...]
    arity: Arity = Arity.NONE


@dataclass(frozen=True, slots=True)
class ArgResult:
    triggered: bool = False
    value: int | float | str | None = None


ParsedArgs: TypeAlias = dict[str, ArgResult]


class GateFailure(Enum):
    RANK = auto()
    COOLDOWN = auto()
    WHITELIST = auto()
    BLACKLIST = auto()
    LIVE = auto()
    ERROR = auto()


CommandCallback: TypeAlias = Callable[[MessageEvent, ParsedArgs], Awaitable[object] | object]
DeniedCallback: TypeAlias = Callable[[MessageEvent, GateFailure], Awaitable[object] | object]


@dataclass(slots=True, eq=False)
class Command:
    triggers: frozenset[str]
    callback: CommandCallback
    rank: Rank = Rank.DEFAULT
    cooldown_ms: int = 0
    whitelist: frozenset[str] = frozenset()
    blacklist: frozenset[str] = frozenset()
    arguments: Mapping[str, ArgumentSpec] = field(default_factory=dict)
    on_denied: DeniedCallback | None = None
    cooldowns: CooldownTable = field(default_factory=CooldownTable)
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            self.name = min(self.triggers) if self.triggers else "?"

    def matches(self, token: str, prefix: str) -> bool:
        if not token.startswith(prefix):
            return False
        return token[len(prefix) :] in self.triggers

    def channel_allowed(self, channel: str) -> GateFailure | None:
        if self.whitelist and channel not in self.whitelist:
            return GateFailure.WHITELIST
        if channel in self.blacklist:
            return GateFailure.BLACKLIST
        return None
