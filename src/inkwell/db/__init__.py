"""Database module for Inkwell."""

from inkwell.db.models import Base, GitHubSettings
from inkwell.db.session import close_db, get_session, get_session_factory
from inkwell.db.store import (
    clear_installation,
    get_github_settings,
    save_github_settings,
    save_installation,
)

__all__ = [
    "Base",
    "GitHubSettings",
    "clear_installation",
    "get_github_settings",
    "close_db",
    "get_session",
    "get_session_factory",
    "save_github_settings",
    "save_installation",
]
