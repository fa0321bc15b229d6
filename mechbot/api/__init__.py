from .app_token import AppTokenManager  # noqa: F401
from .twitch import TokenProvider, TwitchAPI, TwitchUser  # noqa: F401

__all__ = ["AppTokenManager", "TokenProvider", "TwitchAPI", "TwitchUser"]
