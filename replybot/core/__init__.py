"""Core configuration and factory components."""

from replybot.core.config import Settings, get_settings
from replybot.core.factory import ComponentFactory, get_factory

__all__ = [
    "Settings",
    "get_settings",
    "ComponentFactory",
    "get_factory",
]
