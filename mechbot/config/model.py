from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import (
    ARGUMENT_PREFIX,
    COMMAND_PREFIX,
    DEFAULT_IGNORED_USERS,
    IRC_CAPABILITIES,
    RECONNECT_DELAY_SECONDS,
    REPOST_WINDOW_SECONDS,
    TWITCH_IRC_WS_URL,
)


def _normalize_names(values: Any) -> list[str]:
    if not isinstance(values, list | tuple):
        raise ValueError("expected a list of names")
    validated = []
    for v in values:
        if isinstance(v, str):
            stripped = v.strip().lstrip("#").lower()
            if stripped:
                validated.append(stripped)
    return list(dict.fromkeys(validated))


class BotSettings(BaseModel):
    """Runtime settings for one bot account.

    Attributes:
        bot_nick: Chat login of the bot account.
        bot_token: Chat OAuth token (with or without the ``oauth:`` prefix).
        client_id: Twitch application client ID (Helix + app token).
        client_secret: Twitch application client secret.
        owner_id: Twitch user id that is ranked OWNER at startup.
        bot_id: Twitch user id of the bot account (also ranked OWNER, its
            own channel is always joined).
        database_path: SQLite file, ``:memory:`` keeps everything in process.
        repost_excluded_domains: Hosts (and their subdomains) never flagged
            as reposts.
        ignored_users: Logins whose messages are never dispatched.
    """

    bot_nick: str = Field(min_length=3, max_length=25)
    bot_token: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    owner_id: int
    bot_id: int
    database_path: str = "mechbot.db"
    irc_url: str = TWITCH_IRC_WS_URL
    capabilities: list[str] = Field(default_factory=lambda: list(IRC_CAPABILITIES))
    command_prefix: str = Field(default=COMMAND_PREFIX, min_length=1)
    argument_prefix: str = Field(default=ARGUMENT_PREFIX, min_length=1)
    reconnect_delay_seconds: float = Field(default=RECONNECT_DELAY_SECONDS, ge=0)
    repost_window_seconds: int = Field(default=REPOST_WINDOW_SECONDS, gt=0)
    repost_excluded_domains: list[str] = Field(default_factory=list)
    ignored_users: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORED_USERS))
    source_url: str | None = None

    @field_validator("bot_nick", mode="before")
    @classmethod
    def normalize_nick(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("ignored_users", mode="before")
    @classmethod
    def validate_ignored_users(cls, v: Any) -> list[str]:
        return _normalize_names(v)

    @field_validator("repost_excluded_domains", mode="before")
    @classmethod
    def validate_domains(cls, v: Any) -> list[str]:
        return [d.lstrip(".") for d in _normalize_names(v)]

    @field_validator("capabilities", mode="before")
    @classmethod
    def validate_capabilities(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [c for c in v.split() if c]
        return v

    @model_validator(mode="after")
    def ignore_self(self) -> BotSettings:
        """The bot never reacts to its own messages."""
        if self.bot_nick not in self.ignored_users:
            self.ignored_users.append(self.bot_nick)
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BotSettings:
        return cls.model_validate(dict(data))

    def to_dict(self) -> dict[str, Any]:
        """Dictionary form with secrets masked, for logging."""
        data = self.model_dump()
        for key in ("bot_token", "client_secret"):
            if data.get(key):
                data[key] = "***"
        return data
