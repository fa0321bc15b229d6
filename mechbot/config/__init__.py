from .loader import load_settings  # noqa: F401
from .model import BotSettings  # noqa: F401

__all__ = ["BotSettings", "load_settings"]
