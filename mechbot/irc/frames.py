"""Outbound line builders. Every builder returns exactly one CRLF-terminated line."""

from __future__ import annotations

from collections.abc import Iterable

CRLF = "\r\n"


def _channel(channel: str) -> str:
    name = channel.strip().lower()
    return name if name.startswith("#") else f"#{name}"


def _single_line(text: str) -> str:
    return text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")


def pass_line(token: str) -> str:
    if not token.startswith("oauth:"):
        token = f"oauth:{token}"
    return f"PASS {token}{CRLF}"


def nick_line(nick: str) -> str:
    return f"NICK {nick.lower()}{CRLF}"


def cap_request_line(capabilities: Iterable[str]) -> str:
    return f"CAP REQ :{' '.join(capabilities)}{CRLF}"


def join_line(channel: str) -> str:
    return f"JOIN {_channel(channel)}{CRLF}"


def part_line(channel: str) -> str:
    return f"PART {_channel(channel)}{CRLF}"


def privmsg_line(channel: str, text: str) -> str:
    return f"PRIVMSG {_channel(channel)} :{_single_line(text)}{CRLF}"


def pong_line(source: str) -> str:
    return f"PONG :{source}{CRLF}"
