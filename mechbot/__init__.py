"""mechbot: a Twitch chat bot with gated commands and repost detection."""

__version__ = "1.0.0"
