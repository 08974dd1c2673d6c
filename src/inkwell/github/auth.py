"""GitHub App authentication and token management."""

import base64
import binascii
from collections.abc import Callable

import httpx
import jwt
import logfire

from inkwell.core.config import Settings
from inkwell.github.errors import AuthError, ConfigurationError
from inkwell.github.token_cache import InstallationToken, TokenCache

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

# GitHub caps app JWTs at 10 minutes; iat is backdated for clock drift
ASSERTION_LIFETIME = 10 * 60
CLOCK_SKEW = 60

# Installation tokens live about an hour; keep a one minute margin
INSTALLATION_TOKEN_TTL = 59 * 60


def load_private_key(value: str) -> str:
    """Decode the configured App private key into PEM text.

    The key is normally stored as a base64-encoded PEM so it fits in a single
    environment variable. Whitespace inside the base64 text is ignored, and a
    raw PEM (possibly with literal ``\\n`` escapes) is accepted as well.

    Raises:
        ConfigurationError: If the value cannot be turned into a PEM block
    """
    value = value.strip()
    if "-----BEGIN" not in value:
        compact = "".join(value.split())
        try:
            value = base64.b64decode(compact, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ConfigurationError(
                "GITHUB_APP_PRIVATE_KEY is not a valid base64-encoded PEM key."
            ) from e

    pem = value.replace("\\n", "\n").strip()
    if not pem.startswith("-----BEGIN") or "PRIVATE KEY-----" not in pem:
        raise ConfigurationError("GITHUB_APP_PRIVATE_KEY does not contain a PEM private key.")
    return pem + "\n"


class GitHubAuth:
    """Handles GitHub App authentication.

    GitHub Apps authenticate in two steps:
    1. Generate a JWT (the app assertion) signed with the app's private key
    2. Exchange the JWT for an installation access token

    Installation tokens are short-lived (1 hour) and scoped to specific
    installations. They are kept in an injected ``TokenCache`` so every
    client sharing the cache reuses them.
    """

    def __init__(
        self,
        app_id: int | str | None,
        private_key: str | None,
        token_cache: TokenCache | None = None,
        api_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if not app_id or not private_key:
            raise ConfigurationError(
                "GitHub App credentials not configured. "
                "Set GITHUB_APP_ID and GITHUB_APP_PRIVATE_KEY environment variables."
            )

        self.app_id = app_id
        self._private_key = load_private_key(private_key)
        self.token_cache = token_cache if token_cache is not None else TokenCache()
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.clock = clock or self.token_cache.clock

    @classmethod
    def from_settings(cls, settings: Settings, token_cache: TokenCache | None = None) -> "GitHubAuth":
        """Build from application settings."""
        return cls(
            app_id=settings.github_app_id,
            private_key=settings.github_app_private_key,
            token_cache=token_cache,
            api_url=settings.github_api_url,
            timeout=settings.github_timeout,
        )

    def issue_app_assertion(self) -> str:
        """Generate a JWT identifying the GitHub App itself.

        Always freshly signed; callers must not keep it past its expiry.
        """
        now = int(self.clock())
        payload = {
            "iat": now - CLOCK_SKEW,
            "exp": now + ASSERTION_LIFETIME,
            "iss": str(self.app_id),  # GitHub expects app_id as string in JWT
        }

        try:
            return jwt.encode(payload, self._private_key, algorithm="RS256")
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise ConfigurationError(
                "GitHub App private key could not be used to sign the app assertion."
            ) from e

    async def get_installation_token(
        self,
        installation_id: int,
        http_client: httpx.AsyncClient | None = None,
    ) -> InstallationToken:
        """Get an installation access token.

        Served from the cache while the local expiry has not passed.

        Args:
            installation_id: The GitHub App installation ID
            http_client: Optional HTTP client (shared with GitHubClient, or for testing)

        Returns:
            InstallationToken with the access token and metadata

        Raises:
            AuthError: If GitHub refuses the exchange or cannot be reached
        """
        cached = self.token_cache.get(installation_id)
        if cached is not None:
            return cached

        app_jwt = self.issue_app_assertion()
        endpoint = f"/app/installations/{installation_id}/access_tokens"

        client = http_client or httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await client.post(
                f"{self.api_url}{endpoint}",
                headers={
                    "Authorization": f"Bearer {app_jwt}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": GITHUB_API_VERSION,
                },
            )
        except httpx.HTTPError as e:
            logfire.warn(
                "Installation token request failed",
                installation_id=installation_id,
                error=type(e).__name__,
            )
            raise AuthError(
                f"Could not reach GitHub to obtain an installation token: {type(e).__name__}",
                endpoint=endpoint,
            ) from e
        finally:
            if http_client is None:
                await client.aclose()

        if not response.is_success:
            message = github_error_message(response)
            logfire.warn(
                "Installation token exchange rejected",
                installation_id=installation_id,
                status=response.status_code,
            )
            raise AuthError(
                f"Installation token exchange failed: {message}",
                status=response.status_code,
                endpoint=endpoint,
            )

        try:
            data = response.json()
            token = InstallationToken(
                token=data["token"],
                expires_at=data.get("expires_at", ""),
                permissions=data.get("permissions", {}),
                repository_selection=data.get("repository_selection", "all"),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(
                "Installation token response was malformed",
                status=response.status_code,
                endpoint=endpoint,
            ) from e

        self.token_cache.put(installation_id, token, self.clock() + INSTALLATION_TOKEN_TTL)
        logfire.debug("Fetched installation token", installation_id=installation_id)

        return token


def github_error_message(response: httpx.Response) -> str:
    """Extract GitHub's error message from a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"
