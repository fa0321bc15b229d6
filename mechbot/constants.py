"""
Configuration constants for mechbot

This module contains the tunables used throughout the application that have no
field in the settings model. Each constant can be overridden by setting an
environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Twitch endpoints
TWITCH_IRC_WS_URL = os.getenv("TWITCH_IRC_WS_URL", "wss://irc-ws.chat.twitch.tv:443")
TWITCH_HELIX_URL = "https://api.twitch.tv/helix"
TWITCH_OAUTH_URL = "https://id.twitch.tv/oauth2"

# Protocol prefixes
COMMAND_PREFIX = "$"  # [$command ...]
ARGUMENT_PREFIX = "-"  # [... -arg value ...]

# Session / reconnection
RECONNECT_DELAY_SECONDS = _get_env_float(
    "RECONNECT_DELAY_SECONDS", 5.0
)  # Fixed delay before every reconnect attempt (not exponential)
IRC_CONNECT_TIMEOUT_SECONDS = _get_env_float(
    "IRC_CONNECT_TIMEOUT_SECONDS", 15.0
)  # Timeout for opening the websocket transport

# Link repost tracking
REPOST_WINDOW_SECONDS = _get_env_int(
    "REPOST_WINDOW_SECONDS", 24 * 60 * 60
)  # Rolling window inside which a repeated link is a repost

# Cooldown table housekeeping
COOLDOWN_PRUNE_INTERVAL = _get_env_int(
    "COOLDOWN_PRUNE_INTERVAL", 256
)  # Prune expired cooldown entries every N arms

# Network/HTTP
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30
)  # Default HTTP request timeout

# App access token upkeep
APP_TOKEN_CHECK_INTERVAL_SECONDS = _get_env_int(
    "APP_TOKEN_CHECK_INTERVAL_SECONDS", 15 * 60
)  # Seconds between background token validations
APP_TOKEN_MIN_REMAINING_SECONDS = _get_env_int(
    "APP_TOKEN_MIN_REMAINING_SECONDS", 60 * 60
)  # Refresh when fewer seconds than this remain
APP_TOKEN_MAX_ATTEMPTS = _get_env_int(
    "APP_TOKEN_MAX_ATTEMPTS", 4
)  # Attempts for one client-credentials request

# Chat output
DUPLICATE_MESSAGE_SUFFIX = " ⠀"  # braille blank, defeats identical-message drop

# Accounts whose messages are never dispatched (other chat bots)
DEFAULT_IGNORED_USERS = (
    "streamelements",
    "fossabot",
    "l3lackshark",
    "sheppsubot",
    "pogpegabot",
)

# Capabilities requested during the chat handshake
IRC_CAPABILITIES = ("twitch.tv/commands", "twitch.tv/tags")
