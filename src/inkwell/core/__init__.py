"""Core Inkwell functionality."""

from inkwell.core.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
