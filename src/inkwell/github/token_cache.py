"""In-process cache of GitHub App installation access tokens."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass
class InstallationToken:
    """GitHub App installation access token."""

    token: str
    expires_at: str
    permissions: dict[str, str] = field(default_factory=dict)
    repository_selection: str = "all"

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks
        return f"InstallationToken(expires_at={self.expires_at!r})"


class TokenCache:
    """Maps installation ids to tokens with a local expiry timestamp.

    Entries are considered valid while ``expires_at > clock()``. There is no
    locking: two callers missing at the same time both fetch a token and the
    last ``put`` wins, which GitHub tolerates.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self._entries: dict[int, tuple[InstallationToken, float]] = {}

    def get(self, installation_id: int) -> InstallationToken | None:
        """Return the cached token, or None if absent or expired."""
        entry = self._entries.get(installation_id)
        if entry is None:
            return None
        token, expires_at = entry
        if expires_at > self.clock():
            return token
        return None

    def put(self, installation_id: int, token: InstallationToken, expires_at: float) -> None:
        self._entries[installation_id] = (token, expires_at)

    def invalidate(self, installation_id: int) -> None:
        self._entries.pop(installation_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, installation_id: object) -> bool:
        return installation_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
