"""Error taxonomy for the GitHub integration.

Every failure raised by the GitHub layer is a ``GitHubError`` carrying a
``kind`` discriminant and, when the failure came from an HTTP response, the
numeric ``status``. Callers branch on ``kind`` instead of probing attributes.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal


class ErrorKind(StrEnum):
    """Category of a GitHub integration failure."""

    CONFIGURATION = "configuration"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    API = "api"
    DIRECTORY_MISSING = "directory_missing"
    NOT_CONNECTED = "not_connected"


class GitHubError(Exception):
    """Base class for GitHub integration errors."""

    kind: ErrorKind = ErrorKind.API

    def __init__(
        self,
        message: str,
        status: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.endpoint = endpoint

    def user_message(self) -> str:
        """Message suitable for showing to the end user."""
        return "GitHub request failed. Please try again later."

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, status={self.status!r})"


class ConfigurationError(GitHubError):
    """GitHub App credentials are missing or unusable."""

    kind = ErrorKind.CONFIGURATION

    def user_message(self) -> str:
        return self.message


class AuthError(GitHubError):
    """Exchanging the app assertion for an installation token failed."""

    kind = ErrorKind.AUTH

    def user_message(self) -> str:
        return (
            "GitHub rejected the app credentials for this installation. "
            "Please reconnect the GitHub App from the settings page."
        )


class NotFoundError(GitHubError):
    """GitHub answered 404.

    GitHub uses 404 both for a missing path and for a repository the
    installation cannot see. ``scope`` records which one a caller established.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str,
        status: int | None = 404,
        endpoint: str | None = None,
        scope: Literal["path", "repository"] = "path",
    ) -> None:
        super().__init__(message, status=status, endpoint=endpoint)
        self.scope = scope

    def user_message(self) -> str:
        if self.scope == "repository":
            return (
                "Repository not found or the GitHub App has no access to it. "
                "Please check your settings."
            )
        return "The requested file or branch was not found. Please check your settings."


class ValidationError(GitHubError):
    """GitHub rejected the request (stale sha, empty or conflicting commit)."""

    kind = ErrorKind.VALIDATION

    def user_message(self) -> str:
        return "GitHub rejected the change, the file may have been updated meanwhile. Please try again."


class ApiError(GitHubError):
    """Any other unexpected GitHub failure."""

    kind = ErrorKind.API


class NotConnectedError(GitHubError):
    """The user has no usable repository or installation configured."""

    kind = ErrorKind.NOT_CONNECTED

    def user_message(self) -> str:
        return self.message


class PublishError(GitHubError):
    """A commit could not be completed.

    Wraps the underlying ``GitHubError`` (available as ``cause`` and
    ``__cause__``) and keeps its kind and status so callers can still branch on
    them.
    """

    def __init__(
        self,
        message: str,
        cause: GitHubError | None = None,
        kind: ErrorKind | None = None,
    ) -> None:
        super().__init__(
            message,
            status=cause.status if cause else None,
            endpoint=cause.endpoint if cause else None,
        )
        self.cause = cause
        self.kind = kind or (cause.kind if cause else ErrorKind.API)

    def user_message(self) -> str:
        if self.cause is not None:
            return self.cause.user_message()
        return self.message
