"""Publish service - turns a content draft into commits on the user's repository."""

from dataclasses import dataclass

import logfire
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.core.config import Settings
from inkwell.db.models import GitHubSettings
from inkwell.db.store import get_github_settings
from inkwell.github import CommitRequest, GitHubError, GitHubPublisher, NotConnectedError, TokenCache
from inkwell.publishing.images import WEBP_EXTENSION, ImageProcessingError, compress_to_webp
from inkwell.publishing.markdown import render_post
from inkwell.publishing.paths import image_path, parse_data_uri, post_path, slugify


@dataclass
class PostDraft:
    """Content to publish."""

    title: str
    slug: str
    content: str
    main_image: str | None = None


@dataclass
class PublishResult:
    """Structured outcome of a publish; failures never raise."""

    success: bool
    slug: str | None = None
    path: str | None = None
    image_path: str | None = None
    main_image: str | None = None
    commit_sha: str | None = None
    error: str | None = None
    error_kind: str | None = None
    status: int | None = None

    @classmethod
    def failed(cls, error: GitHubError, slug: str | None = None) -> "PublishResult":
        return cls(
            success=False,
            slug=slug,
            error=error.user_message(),
            error_kind=error.kind.value,
            status=error.status,
        )


class PublishService:
    """Publishes drafts for a user using their stored GitHub settings.

    The GitHub publisher is built on first use, so missing App credentials
    surface as a failed result rather than at startup.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        token_cache: TokenCache | None = None,
        publisher: GitHubPublisher | None = None,
    ) -> None:
        self.session = session
        self.settings = settings
        self.token_cache = token_cache
        self._publisher = publisher

    def _get_publisher(self) -> GitHubPublisher:
        if self._publisher is None:
            self._publisher = GitHubPublisher.from_settings(self.settings, token_cache=self.token_cache)
        return self._publisher

    async def close(self) -> None:
        if self._publisher is not None:
            await self._publisher.close()

    async def _connected_settings(self, user_id: str) -> GitHubSettings:
        gh_settings = await get_github_settings(self.session, user_id)
        if gh_settings is None:
            raise NotConnectedError(
                "GitHub settings not found. Please configure them on the settings page."
            )
        if not gh_settings.is_connected:
            raise NotConnectedError(
                "GitHub repository details are incomplete or the GitHub App is not connected. "
                "Please check your settings."
            )
        return gh_settings

    async def list_branches(self, user_id: str) -> list[str]:
        """Branches of the user's configured repository.

        Raises:
            GitHubError: Not connected, or whatever the GitHub call raised
        """
        gh_settings = await self._connected_settings(user_id)
        return await self._get_publisher().list_branches(
            gh_settings.owner, gh_settings.repo, gh_settings.installation_id
        )

    async def publish_post(self, user_id: str, draft: PostDraft) -> PublishResult:
        """Commit a draft (and its inline main image, if any) to GitHub.

        The slug is sanitized once and used for the file name, the image name
        and the front matter alike. Inline images are re-encoded as WebP.
        """
        try:
            slug = slugify(draft.slug)
        except ValueError as e:
            return PublishResult(success=False, slug=draft.slug, error=str(e), error_kind="validation")

        try:
            gh_settings = await self._connected_settings(user_id)
            publisher = self._get_publisher()

            main_image = draft.main_image
            committed_image: str | None = None
            inline_image = parse_data_uri(main_image) if main_image else None
            if inline_image is not None:
                try:
                    webp_data = compress_to_webp(inline_image.data)
                except ImageProcessingError as e:
                    logfire.warn("Rejected inline image", user_id=user_id, slug=slug, error=str(e))
                    return PublishResult(
                        success=False,
                        slug=slug,
                        error=(
                            "The main image could not be processed. "
                            "Please upload a PNG, JPEG, GIF or WebP image."
                        ),
                        error_kind="validation",
                    )

                committed_image = image_path(slug, WEBP_EXTENSION, self.settings.images_dir)
                await publisher.commit_file(
                    CommitRequest(
                        owner=gh_settings.owner,
                        repo=gh_settings.repo,
                        installation_id=gh_settings.installation_id,
                        path=committed_image,
                        content=webp_data,
                        commit_message=f"feat: add image for {slug}",
                        branch=gh_settings.branch,
                        is_base64=True,
                    )
                )
                main_image = f"/{committed_image}"

            result = await publisher.commit_file(
                CommitRequest(
                    owner=gh_settings.owner,
                    repo=gh_settings.repo,
                    installation_id=gh_settings.installation_id,
                    path=post_path(slug, self.settings.posts_dir),
                    content=render_post(draft.title, slug, draft.content, main_image),
                    commit_message=f'feat: publish post "{draft.title}"',
                    branch=gh_settings.branch,
                )
            )
        except GitHubError as e:
            logfire.error(
                "Error publishing content",
                user_id=user_id,
                slug=slug,
                kind=e.kind.value,
                status=e.status,
                error=e.message,
            )
            return PublishResult.failed(e, slug=slug)

        logfire.info(
            "Published content",
            user_id=user_id,
            slug=slug,
            path=result.path,
            created=result.created,
        )
        return PublishResult(
            success=True,
            slug=slug,
            path=result.path,
            image_path=committed_image,
            main_image=main_image,
            commit_sha=result.commit_sha,
        )
