"""GitHub API client for repository contents and branches."""

from typing import Any
from urllib.parse import quote

import httpx
import logfire

from inkwell.core.config import Settings
from inkwell.github.auth import GITHUB_API_URL, GITHUB_API_VERSION, GitHubAuth, github_error_message
from inkwell.github.errors import ApiError, NotFoundError, ValidationError
from inkwell.github.token_cache import TokenCache


def contents_path(owner: str, repo: str, path: str) -> str:
    """Build the Contents API endpoint for a repository path."""
    encoded = quote(path.strip("/"), safe="/")
    return f"/repos/{owner}/{repo}/contents/{encoded}"


class GitHubClient:
    """Authenticated client for the GitHub REST API.

    Every call goes through ``request``, which attaches the installation token
    and turns non-2xx responses into the ``GitHubError`` taxonomy.
    """

    def __init__(
        self,
        auth: GitHubAuth,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
    ) -> None:
        self.auth = auth
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @classmethod
    def from_settings(cls, settings: Settings, token_cache: TokenCache | None = None) -> "GitHubClient":
        """Build a client from application settings.

        Raises:
            ConfigurationError: If the GitHub App credentials are missing
        """
        return cls(
            auth=GitHubAuth.from_settings(settings, token_cache=token_cache),
            base_url=settings.github_api_url,
            timeout=settings.github_timeout,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": GITHUB_API_VERSION,
                },
                timeout=self.timeout,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        installation_id: int,
        **kwargs: Any,
    ) -> Any | None:
        """Make an authenticated request to the GitHub API.

        Args:
            method: HTTP method
            path: API path, relative to the API root
            installation_id: GitHub App installation ID
            **kwargs: Passed through to httpx (params, json, ...)

        Returns:
            Parsed JSON body, or None for 204 / empty responses

        Raises:
            NotFoundError: On 404
            ValidationError: On 409 or 422
            ApiError: On any other non-2xx status or a transport failure
            AuthError: If no installation token could be obtained
        """
        client = await self._get_client()
        token = await self.auth.get_installation_token(installation_id, http_client=client)

        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {token.token}"
        headers.setdefault("Accept", "application/vnd.github+json")
        headers.setdefault("X-GitHub-Api-Version", GITHUB_API_VERSION)

        try:
            response = await client.request(
                method, f"{self.base_url}{path}", headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            logfire.warn(
                "GitHub API request failed",
                method=method,
                path=path,
                error=type(e).__name__,
            )
            raise ApiError(
                f"GitHub API request failed: {type(e).__name__} (URL: {path})",
                endpoint=path,
            ) from e

        logfire.debug(
            "GitHub API request",
            method=method,
            path=path,
            status=response.status_code,
        )

        if not response.is_success:
            message = github_error_message(response)
            status = response.status_code
            if status == 404:
                raise NotFoundError(f"Not Found: {message} (URL: {path})", endpoint=path)
            if status in (409, 422):
                raise ValidationError(
                    f"Validation Error: {message} (URL: {path})", status=status, endpoint=path
                )
            logfire.error(
                "GitHub API error",
                method=method,
                path=path,
                status=status,
                message=message,
            )
            raise ApiError(f"GitHub API Error: {message} (URL: {path})", status=status, endpoint=path)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"GitHub API returned invalid JSON (URL: {path})",
                status=response.status_code,
                endpoint=path,
            ) from e

    # ─────────────────────────────────────────────────────────────────
    # Repository Operations
    # ─────────────────────────────────────────────────────────────────

    async def get_repository(
        self,
        installation_id: int,
        owner: str,
        repo: str,
    ) -> dict[str, Any]:
        """Get repository metadata."""
        return await self.request("GET", f"/repos/{owner}/{repo}", installation_id)

    async def list_branches(
        self,
        installation_id: int,
        owner: str,
        repo: str,
    ) -> list[str]:
        """List branch names in the order GitHub returns them."""
        data = await self.request(
            "GET",
            f"/repos/{owner}/{repo}/branches",
            installation_id,
            params={"per_page": 100},
        )
        return [branch["name"] for branch in data or []]

    # ─────────────────────────────────────────────────────────────────
    # Contents Operations
    # ─────────────────────────────────────────────────────────────────

    async def get_contents(
        self,
        installation_id: int,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Get a file (object) or directory listing (array) at ``path``.

        Raises:
            NotFoundError: If the path, ref, or repository does not exist
        """
        params = {"ref": ref} if ref else {}
        return await self.request(
            "GET",
            contents_path(owner, repo, path),
            installation_id,
            params=params,
        )

    async def put_contents(
        self,
        installation_id: int,
        owner: str,
        repo: str,
        path: str,
        encoded_content: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> dict[str, Any] | None:
        """Create or update a file.

        Args:
            installation_id: GitHub App installation ID
            owner: Repository owner
            repo: Repository name
            path: File path
            encoded_content: Base64-encoded file content
            message: Commit message
            branch: Target branch
            sha: Current blob SHA (required for updates, None for new files)

        Returns:
            Commit and content objects
        """
        payload: dict[str, Any] = {
            "message": message,
            "content": encoded_content,
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha

        return await self.request(
            "PUT",
            contents_path(owner, repo, path),
            installation_id,
            json=payload,
        )
