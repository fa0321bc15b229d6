"""Domain event logger.

Every noteworthy thing the bot does is emitted as ``domain_action`` with a
human readable line rendered from the event template catalog. Output goes
through the standard logging tree so the root configuration in
``logging_config`` decides formatting and destinations.
"""

from __future__ import annotations

import logging
import os

from .event_catalog import render_event


class BotLogger:
    def __init__(self, name: str = "mechbot.events") -> None:
        self._event_name_width = 28
        self.logger = logging.getLogger(name)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        event_name = f"{domain}_{action}".lower()
        human_text = human
        if human_text is None:
            human_text = render_event(domain, action, kwargs)
        if human_text is None:
            human_text = f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}"
            kwargs.setdefault("derived", True)
        self._log(level, event_name, human_text, exc_info=exc_info, **kwargs)

    def _log(
        self,
        level: int,
        event_name: str,
        human_text: str,
        exc_info: bool = False,
        **kwargs: object,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        channel_o = kwargs.pop("channel", None)
        channel = channel_o if isinstance(channel_o, str) else None
        prefix = self._build_prefix(channel)
        if self._is_debug_enabled():
            msg = self._build_debug_message(event_name, prefix, human_text, kwargs)
        else:
            msg = f"{prefix} {human_text}"
        self.logger.log(level, msg, exc_info=exc_info)

    @staticmethod
    def _is_debug_enabled() -> bool:
        return os.environ.get("DEBUG", "false").lower() in ("true", "1", "yes")

    @staticmethod
    def _build_prefix(channel: str | None) -> str:
        core = f"#{channel}" if channel else "system"
        return f"[{core.ljust(20)[:20]}]"

    def _build_debug_message(
        self,
        event_name: str,
        prefix: str,
        human_text: str,
        kwargs: dict[str, object],
    ) -> str:
        width = self._event_name_width
        if len(event_name) <= width:
            ev = event_name.ljust(width)
        else:
            ev = event_name[: width - 1] + "…"
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        base = f"{ev} {prefix} {human_text}"
        if context:
            base = f"{base} ({context})"
        return base


logger = BotLogger()
