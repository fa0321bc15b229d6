"""Chat line parsing (wire line -> typed event).

The parser is permissive: Twitch is not an adversarial peer and losing one
odd line must never take the session down, so nothing here raises. Anything
that cannot be recognised becomes an ``UnknownEvent``.
"""

from __future__ import annotations

from collections.abc import Callable

from .models import (
    Event,
    JoinEvent,
    MessageEvent,
    PartEvent,
    PingEvent,
    ReconnectEvent,
    RoomstateEvent,
    UnknownEvent,
    UsernoticeEvent,
    UserstateEvent,
)

_TAG_ESCAPES = {"s": " ", ":": ";", "\\": "\\", "r": "\r", "n": "\n"}


def parse_line(line: str) -> Event:
    tokens = line.split(" ")
    index = 0
    tags: dict[str, str] = {}
    source = ""

    if tokens[index].startswith("@"):
        tags = _parse_tags(tokens[index][1:])
        index += 1
    if index < len(tokens) and tokens[index].startswith(":"):
        source = tokens[index][1:]
        index += 1
    if index >= len(tokens) or not tokens[index]:
        return UnknownEvent(raw=line, source=source, verb="", tags=tags, args=())

    verb = tokens[index]
    args = [t for t in tokens[index + 1 :] if t]

    builder = _BUILDERS.get(verb.upper())
    if builder is None:
        return UnknownEvent(
            raw=line, source=source, verb=verb, tags=tags, args=tuple(args)
        )
    return builder(line, source, tags, args)


def split_frame(data: str) -> tuple[list[str], str]:
    """Split a transport frame on CRLF.

    Returns the complete, non-blank lines and whatever trailing partial line
    has to wait for the next frame.
    """
    parts = data.split("\r\n")
    remainder = parts.pop()
    return [p for p in parts if p.strip()], remainder


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        if "=" in tag:
            k, v = tag.split("=", 1)
        else:
            k, v = tag, ""
        tags[k] = _unescape_tag_value(v)
    return tags


def _unescape_tag_value(value: str) -> str:
    if "\\" not in value:
        return value
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, "")
        out.append(_TAG_ESCAPES.get(nxt, nxt))
    return "".join(out)


def _parse_badges(raw: str) -> dict[str, int]:
    badges: dict[str, int] = {}
    for item in raw.split(","):
        if not item:
            continue
        name, _, level = item.partition("/")
        badges[name] = _to_int(level)
    return badges


def _to_int(value: str | None, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _optional_int(tags: dict[str, str], key: str) -> int | None:
    if key not in tags:
        return None
    return _to_int(tags[key])


def _optional_flag(tags: dict[str, str], key: str) -> bool | None:
    if key not in tags:
        return None
    return _to_int(tags[key]) != 0


def _flag(tags: dict[str, str], key: str) -> bool:
    return tags.get(key) == "1"


def _nick(source: str) -> str:
    return source.split("!", 1)[0].lower()


def _channel(args: list[str]) -> str:
    if not args:
        return ""
    first = args[0]
    return first[1:] if first.startswith("#") else first


def _text(args: list[str]) -> str:
    text = " ".join(args[1:])
    return text[1:] if text.startswith(":") else text


def _names(tags: dict[str, str], source: str) -> tuple[str, str]:
    display = tags.get("display-name", "")
    if not display:
        display = source.split("!", 1)[0]
    return display.lower(), display


def _build_message(
    line: str, source: str, tags: dict[str, str], args: list[str]
) -> MessageEvent:
    user_name, display_name = _names(tags, source)
    return MessageEvent(
        raw=line,
        source=source,
        id=tags.get("id", ""),
        sent_at_ms=_to_int(tags.get("tmi-sent-ts")),
        room_id=_to_int(tags.get("room-id")),
        user_id=_to_int(tags.get("user-id")),
        user_name=user_name,
        display_name=display_name,
        color=tags.get("color", ""),
        badges=_parse_badges(tags.get("badges", "")),
        is_mod=_flag(tags, "mod"),
        is_subscriber=_flag(tags, "subscriber"),
        is_turbo=_flag(tags, "turbo"),
        channel=_channel(args),
        message=_text(args),
    )


def _build_userstate(
    line: str, source: str, tags: dict[str, str], args: list[str]
) -> UserstateEvent:
    user_name, display_name = _names(tags, source)
    return UserstateEvent(
        raw=line,
        source=source,
        badges=_parse_badges(tags.get("badges", "")),
        user_name=user_name,
        display_name=display_name,
        color=tags.get("color", ""),
        is_mod=_flag(tags, "mod"),
        is_subscriber=_flag(tags, "subscriber"),
        is_turbo=_flag(tags, "turbo"),
        channel=_channel(args),
    )


def _build_usernotice(
    line: str, source: str, tags: dict[str, str], args: list[str]
) -> UsernoticeEvent:
    display = tags.get("display-name", "") or tags.get("login", "")
    return UsernoticeEvent(
        raw=line,
        source=source,
        id=tags.get("id", ""),
        sent_at_ms=_to_int(tags.get("tmi-sent-ts")),
        room_id=_to_int(tags.get("room-id")),
        user_id=_to_int(tags.get("user-id")),
        user_name=(tags.get("login") or display).lower(),
        display_name=display,
        color=tags.get("color", ""),
        badges=_parse_badges(tags.get("badges", "")),
        is_mod=_flag(tags, "mod"),
        is_subscriber=_flag(tags, "subscriber"),
        is_turbo=_flag(tags, "turbo"),
        notice_type=tags.get("msg-id", ""),
        system_message=tags.get("system-msg", ""),
        channel=_channel(args),
        message=_text(args),
    )


def _build_roomstate(
    line: str, source: str, tags: dict[str, str], args: list[str]
) -> RoomstateEvent:
    return RoomstateEvent(
        raw=line,
        source=source,
        room_id=_to_int(tags.get("room-id")),
        channel=_channel(args),
        emote_only=_optional_flag(tags, "emote-only"),
        subs_only=_optional_flag(tags, "subs-only"),
        followers_only=_optional_int(tags, "followers-only"),
        slow=_optional_int(tags, "slow"),
        r9k=_optional_flag(tags, "r9k"),
    )


def _build_reconnect(
    line: str, source: str, tags: dict[str, str], args: list[str]
) -> ReconnectEvent:
    return ReconnectEvent(raw=line, source=source)


def _build_join(
    line: str, source: str, tags: dict[str, str], args: list[str]
) -> JoinEvent:
    return JoinEvent(raw=line, source=source, channel=_channel(args), user_name=_nick(source))


def _build_part(
    line: str, source: str, tags: dict[str, str], args: list[str]
) -> PartEvent:
    return PartEvent(raw=line, source=source, channel=_channel(args), user_name=_nick(source))


def _build_ping(
    line: str, source: str, tags: dict[str, str], args: list[str]
) -> PingEvent:
    # The ping origin travels as the first argument, not as the line source.
    origin = args[0] if args else source
    if origin.startswith(":"):
        origin = origin[1:]
    return PingEvent(raw=line, source=origin)


_BUILDERS: dict[str, Callable[[str, str, dict[str, str], list[str]], Event]] = {
    "PRIVMSG": _build_message,
    "USERSTATE": _build_userstate,
    "USERNOTICE": _build_usernotice,
    "ROOMSTATE": _build_roomstate,
    "RECONNECT": _build_reconnect,
    "JOIN": _build_join,
    "PART": _build_part,
    "PING": _build_ping,
}
