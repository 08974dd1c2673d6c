"""Commit files to a user's repository through the Contents API."""

import base64
from collections.abc import Sequence
from dataclasses import dataclass

import logfire

from inkwell.core.config import Settings
from inkwell.github.client import GitHubClient
from inkwell.github.errors import ErrorKind, GitHubError, NotFoundError, PublishError
from inkwell.github.token_cache import TokenCache


@dataclass
class CommitRequest:
    """A single-file commit."""

    owner: str
    repo: str
    installation_id: int
    path: str
    content: str | bytes
    commit_message: str
    branch: str = "main"
    is_base64: bool = False


@dataclass
class RemoteFile:
    """Current state of a file in the target repository."""

    path: str
    sha: str
    branch: str


@dataclass
class CommitResult:
    """Outcome of a successful commit."""

    path: str
    sha: str | None
    commit_sha: str | None
    created: bool


def encode_content(content: str | bytes, is_base64: bool = False) -> str:
    """Return ``content`` as the base64 text the Contents API expects."""
    if is_base64:
        return content.decode("ascii") if isinstance(content, bytes) else content
    raw = content.encode("utf-8") if isinstance(content, str) else content
    return base64.b64encode(raw).decode("ascii")


class GitHubPublisher:
    """Creates or updates single files in a repository.

    Writes use the blob SHA observed immediately beforehand as precondition,
    so a concurrent writer makes GitHub reject the commit instead of silently
    overwriting. Nothing is retried here.
    """

    def __init__(
        self,
        client: GitHubClient,
        guarded_dirs: Sequence[str] = ("_posts",),
    ) -> None:
        self.client = client
        self.guarded_dirs = tuple(d.strip("/") for d in guarded_dirs if d.strip("/"))

    @classmethod
    def from_settings(cls, settings: Settings, token_cache: TokenCache | None = None) -> "GitHubPublisher":
        """Build a publisher guarding the configured posts directory.

        Raises:
            ConfigurationError: If the GitHub App credentials are missing
        """
        return cls(
            GitHubClient.from_settings(settings, token_cache=token_cache),
            guarded_dirs=(settings.posts_dir,),
        )

    async def close(self) -> None:
        await self.client.close()

    def guarded_dir_for(self, path: str) -> str | None:
        """Return the guarded publish directory containing ``path``, if any."""
        normalized = path.lstrip("/")
        for directory in self.guarded_dirs:
            if normalized.startswith(f"{directory}/"):
                return directory
        return None

    async def directory_exists(
        self,
        owner: str,
        repo: str,
        installation_id: int,
        dir_path: str,
        branch: str,
    ) -> bool:
        """Check that ``dir_path`` is reachable on ``branch``.

        A 404 on the directory only means "not created yet" if the repository
        itself is reachable. When the repository answers 404 too, the error is
        re-raised with ``scope="repository"``.
        """
        try:
            await self.client.get_contents(installation_id, owner, repo, dir_path, ref=branch)
            return True
        except NotFoundError:
            pass

        try:
            await self.client.get_repository(installation_id, owner, repo)
        except NotFoundError as e:
            raise NotFoundError(
                f"Repository {owner}/{repo} not found or not accessible to the GitHub App",
                endpoint=e.endpoint,
                scope="repository",
            ) from e
        return False

    async def get_remote_file(
        self,
        owner: str,
        repo: str,
        installation_id: int,
        path: str,
        branch: str,
    ) -> RemoteFile | None:
        """Fetch the current blob SHA of ``path``, or None if it does not exist."""
        try:
            data = await self.client.get_contents(installation_id, owner, repo, path, ref=branch)
        except NotFoundError:
            return None
        if not isinstance(data, dict) or not data.get("sha"):
            # A directory listing at a file path; let the write fail loudly
            return None
        return RemoteFile(path=path, sha=data["sha"], branch=branch)

    async def commit_file(self, request: CommitRequest) -> CommitResult:
        """Create or update one file.

        Raises:
            PublishError: Wrapping the guard or API failure
            ConfigurationError: If the GitHub App is not configured
        """
        repo_name = f"{request.owner}/{request.repo}"
        directory = self.guarded_dir_for(request.path)
        stage = "Safety check failed"

        try:
            if directory is not None:
                exists = await self.directory_exists(
                    request.owner,
                    request.repo,
                    request.installation_id,
                    directory,
                    request.branch,
                )
                if not exists:
                    logfire.warn(
                        "Publish directory missing",
                        repo=repo_name,
                        directory=directory,
                        branch=request.branch,
                    )
                    raise PublishError(
                        f"Safety check failed: '{directory}' directory not found in the "
                        f"'{request.branch}' branch. Create it in your repository first.",
                        kind=ErrorKind.DIRECTORY_MISSING,
                    )

            stage = "Commit failed"
            existing = await self.get_remote_file(
                request.owner,
                request.repo,
                request.installation_id,
                request.path,
                request.branch,
            )

            data = await self.client.put_contents(
                request.installation_id,
                request.owner,
                request.repo,
                request.path,
                encode_content(request.content, request.is_base64),
                request.commit_message,
                request.branch,
                sha=existing.sha if existing else None,
            )
        except PublishError:
            raise
        except GitHubError as e:
            if e.kind == ErrorKind.CONFIGURATION:
                raise
            logfire.error(
                "Failed to commit to GitHub repository",
                repo=repo_name,
                path=request.path,
                branch=request.branch,
                kind=e.kind.value,
                status=e.status,
            )
            raise PublishError(f"{stage}: {e.message}", cause=e) from e

        data = data or {}
        result = CommitResult(
            path=request.path,
            sha=(data.get("content") or {}).get("sha"),
            commit_sha=(data.get("commit") or {}).get("sha"),
            created=existing is None,
        )

        logfire.info(
            "Committed file",
            repo=repo_name,
            path=request.path,
            branch=request.branch,
            created=result.created,
            commit_sha=result.commit_sha,
        )
        return result

    async def list_branches(self, owner: str, repo: str, installation_id: int) -> list[str]:
        """Branch names for repository configuration; errors propagate."""
        return await self.client.list_branches(installation_id, owner, repo)
