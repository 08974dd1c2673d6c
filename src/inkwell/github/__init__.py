"""GitHub App integration."""

from inkwell.github.auth import GitHubAuth, load_private_key
from inkwell.github.client import GitHubClient
from inkwell.github.errors import (
    ApiError,
    AuthError,
    ConfigurationError,
    ErrorKind,
    GitHubError,
    NotConnectedError,
    NotFoundError,
    PublishError,
    ValidationError,
)
from inkwell.github.publisher import CommitRequest, CommitResult, GitHubPublisher, RemoteFile
from inkwell.github.token_cache import InstallationToken, TokenCache

__all__ = [
    "ApiError",
    "AuthError",
    "CommitRequest",
    "CommitResult",
    "ConfigurationError",
    "ErrorKind",
    "GitHubAuth",
    "GitHubClient",
    "GitHubError",
    "GitHubPublisher",
    "InstallationToken",
    "NotConnectedError",
    "NotFoundError",
    "PublishError",
    "RemoteFile",
    "TokenCache",
    "ValidationError",
    "load_private_key",
]
