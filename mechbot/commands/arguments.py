"""Flag extraction for command messages.

``$roll -m 50 extra`` with a schema ``{"max": ArgumentSpec(("m",), Arity.NUMBER)}``
yields ``max=ArgResult(True, 50)`` and ``main=ArgResult(True, "extra")``.
Whatever no flag consumed (the trigger excluded) becomes ``main``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..constants import ARGUMENT_PREFIX
from .models import ArgResult, ArgumentSpec, Arity, ParsedArgs

MAIN_ARGUMENT = "main"


def extract_arguments(
    tokens: Sequence[str],
    schema: Mapping[str, ArgumentSpec],
    prefix: str = ARGUMENT_PREFIX,
) -> ParsedArgs:
    consumed: set[int] = set()
    results: ParsedArgs = {}

    for name, spec in schema.items():
        flags = {f"{prefix}{alias}" for alias in spec.aliases}
        index = _next_unconsumed(tokens, consumed, 1, lambda tok: tok in flags)
        if index is None:
            results[name] = ArgResult(False, None)
            continue
        consumed.add(index)
        if spec.arity is Arity.NONE:
            results[name] = ArgResult(True, None)
            continue
        value_index = _next_unconsumed(tokens, consumed, index + 1)
        if value_index is None:
            results[name] = ArgResult(True, None)
            continue
        consumed.add(value_index)
        raw = tokens[value_index]
        value = _coerce_number(raw) if spec.arity is Arity.NUMBER else raw
        results[name] = ArgResult(True, value)

    rest = [tok for i, tok in enumerate(tokens) if i > 0 and i not in consumed]
    main = " ".join(rest)
    results[MAIN_ARGUMENT] = ArgResult(bool(main), main or None)
    return results


def _next_unconsumed(tokens, consumed, start, predicate=None):  # type: ignore[no-untyped-def]
    for i in range(start, len(tokens)):
        if i in consumed:
            continue
        if predicate is None or predicate(tokens[i]):
            return i
    return None


def _coerce_number(raw: str) -> int | float | None:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return None
