"""Settings loading: optional JSON file overlaid with environment variables."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..errors.internal import ConfigError
from .model import BotSettings

CONFIG_FILE_ENV = "MECHBOT_CONF_FILE"
ENV_PREFIX = "MECHBOT_"
_LIST_FIELDS = {"capabilities", "repost_excluded_domains", "ignored_users"}


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except (OSError, ValueError) as e:
        raise ConfigError(f"Config file unreadable: {path}: {str(e)}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a JSON object: {path}")
    return raw


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in BotSettings.model_fields:
        value = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if value is None:
            continue
        if name in _LIST_FIELDS:
            overrides[name] = [v for v in (p.strip() for p in value.split(",")) if v]
        else:
            overrides[name] = value
    return overrides


def load_settings(
    config_file: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> BotSettings:
    """Build validated settings.

    The file named by ``config_file`` (or ``$MECHBOT_CONF_FILE``) is optional;
    ``MECHBOT_<FIELD>`` variables override its values.

    Raises:
        ConfigError: File unreadable or the merged settings fail validation.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}
    path_value = config_file if config_file is not None else env.get(CONFIG_FILE_ENV)
    if path_value:
        data.update(_read_config_file(Path(path_value)))
    data.update(_env_overrides(env))
    try:
        settings = BotSettings.from_dict(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ConfigError(
            f"Invalid settings: {', '.join(fields) or 'unknown field'}",
            data={"errors": e.errors()},
        ) from e
    logging.info(f"✅ Settings loaded for bot_nick={settings.bot_nick}")
    return settings
