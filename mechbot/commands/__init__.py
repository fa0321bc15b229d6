"""Command matching, gating, argument parsing and cooldowns."""

from ..storage.models import Rank  # noqa: F401
from .arguments import MAIN_ARGUMENT, extract_arguments  # noqa: F401
from .cooldown import CooldownTable  # noqa: F401
from .models import (  # noqa: F401
    ArgResult,
    ArgumentSpec,
    Arity,
    Command,
    GateFailure,
    ParsedArgs,
)
from .registry import CommandRegistry  # noqa: F401

__all__ = [
    "MAIN_ARGUMENT",
    "ArgResult",
    "ArgumentSpec",
    "Arity",
    "Command",
    "CommandRegistry",
    "CooldownTable",
    "GateFailure",
    "ParsedArgs",
    "Rank",
    "extract_arguments",
]
