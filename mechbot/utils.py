"""Small formatting helpers shared by chat replies and logs."""

from __future__ import annotations


def format_elapsed(total_seconds: int | float | None) -> str:
    """Compact, chat-friendly duration, keeping the two largest units.

    Examples:
      42 -> "42s"
      125 -> "2m 5s"
      7300 -> "2h 1m"
      90061 -> "1d 1h"
    """
    if total_seconds is None:
        return "unknown"
    seconds = max(0, int(total_seconds))
    units = (("d", 86400), ("h", 3600), ("m", 60), ("s", 1))
    parts: list[str] = []
    for suffix, size in units:
        value, seconds = divmod(seconds, size)
        if value or parts:
            parts.append(f"{value}{suffix}")
        if len(parts) == 2:
            break
    return " ".join(parts) if parts else "0s"
