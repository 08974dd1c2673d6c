"""API v1 routes for Inkwell."""

from typing import Any

import logfire
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.api.auth import verify_api_key
from inkwell.api.deps import get_publish_service, get_publisher
from inkwell.api.errors import APIError, ErrorCode, SettingsNotFoundError
from inkwell.api.install_state import INSTALL_STATE_TTL, issue_install_state
from inkwell.api.rate_limit import RATE_LIMITS, limiter
from inkwell.core.config import get_settings
from inkwell.db.session import get_session
from inkwell.db.store import get_github_settings, save_github_settings
from inkwell.github import GitHubPublisher
from inkwell.publishing import PostDraft, PublishService

router = APIRouter(dependencies=[Depends(verify_api_key)])


class SettingsRequest(BaseModel):
    """Repository coordinates a user publishes to."""

    owner: str = Field(..., min_length=1, description="Repository owner (user or organization)")
    repo: str = Field(..., min_length=1, description="Repository name")
    branch: str = Field("main", min_length=1, description="Branch to commit to")


class SettingsResponse(BaseModel):
    """Stored GitHub settings for a user."""

    user_id: str
    owner: str | None = None
    repo: str | None = None
    branch: str = "main"
    installation_id: int | None = None
    connected: bool = Field(..., description="Whether publishing is possible")


class BranchesResponse(BaseModel):
    """Branch names in the order GitHub returns them."""

    branches: list[str]


class InstallStateResponse(BaseModel):
    """Signed state for the GitHub App install link."""

    state: str = Field(..., description="Pass as the `state` query parameter of the install URL")
    expires_in: int = Field(..., description="Seconds until the state is rejected")


class PublishRequest(BaseModel):
    """A post to publish."""

    title: str = Field(..., min_length=1, description="Post title")
    slug: str = Field(..., min_length=1, description="URL slug, used as the file name")
    content: str = Field(..., description="Markdown body")
    main_image: str | None = Field(
        None, description="Existing image path, or a base64 data URI to upload"
    )


class PublishResponse(BaseModel):
    """Structured publish outcome; failures are reported, not raised."""

    success: bool
    slug: str | None = None
    path: str | None = None
    image_path: str | None = None
    main_image: str | None = None
    commit_sha: str | None = None
    error: str | None = None
    error_kind: str | None = None
    status: int | None = None


def _settings_response(user_id: str, gh_settings: Any) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "owner": gh_settings.owner,
        "repo": gh_settings.repo,
        "branch": gh_settings.branch,
        "installation_id": gh_settings.installation_id,
        "connected": gh_settings.is_connected,
    }


@router.get("/users/{user_id}/settings", response_model=SettingsResponse)
@limiter.limit(RATE_LIMITS["settings"])
async def get_settings_endpoint(
    request: Request,  # Required for rate limiting
    user_id: str,
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Get a user's GitHub settings."""
    gh_settings = await get_github_settings(session, user_id)
    if gh_settings is None:
        raise SettingsNotFoundError(user_id)
    return _settings_response(user_id, gh_settings)


@router.put("/users/{user_id}/settings", response_model=SettingsResponse)
@limiter.limit(RATE_LIMITS["settings"])
async def save_settings_endpoint(
    request: Request,  # Required for rate limiting
    user_id: str,
    body: SettingsRequest,
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Save the repository a user publishes to. The installation is kept."""
    gh_settings = await save_github_settings(
        session,
        user_id=user_id,
        owner=body.owner,
        repo=body.repo,
        branch=body.branch,
    )
    return _settings_response(user_id, gh_settings)


@router.get("/users/{user_id}/branches", response_model=BranchesResponse)
@limiter.limit(RATE_LIMITS["branches"])
async def list_user_branches(
    request: Request,  # Required for rate limiting
    user_id: str,
    service: PublishService = Depends(get_publish_service),
) -> dict[str, list[str]]:
    """List branches of the user's configured repository."""
    return {"branches": await service.list_branches(user_id)}


@router.get("/branches", response_model=BranchesResponse)
@limiter.limit(RATE_LIMITS["branches"])
async def list_branches(
    request: Request,  # Required for rate limiting
    owner: str = Query(..., min_length=1),
    repo: str = Query(..., min_length=1),
    installation_id: int = Query(..., gt=0),
    publisher: GitHubPublisher = Depends(get_publisher),
) -> dict[str, list[str]]:
    """List branches of any repository the installation can see.

    Used while the user is still choosing a repository on the settings page.
    """
    branches = await publisher.list_branches(owner, repo, installation_id)
    return {"branches": branches}


@router.post("/users/{user_id}/publish", response_model=PublishResponse)
@limiter.limit(RATE_LIMITS["publish"])
async def publish_post(
    request: Request,  # Required for rate limiting
    user_id: str,
    body: PublishRequest,
    service: PublishService = Depends(get_publish_service),
) -> dict[str, Any]:
    """Commit a post (and its inline image, if any) to the user's repository."""
    logfire.info("Publish requested", user_id=user_id, slug=body.slug)

    result = await service.publish_post(
        user_id,
        PostDraft(
            title=body.title,
            slug=body.slug,
            content=body.content,
            main_image=body.main_image,
        ),
    )
    return {
        "success": result.success,
        "slug": result.slug,
        "path": result.path,
        "image_path": result.image_path,
        "main_image": result.main_image,
        "commit_sha": result.commit_sha,
        "error": result.error,
        "error_kind": result.error_kind,
        "status": result.status,
    }


@router.post("/users/{user_id}/install-state", response_model=InstallStateResponse)
@limiter.limit(RATE_LIMITS["settings"])
async def create_install_state(
    request: Request,  # Required for rate limiting
    user_id: str,
) -> dict[str, Any]:
    """Sign a ``state`` value tying the next App installation to ``user_id``."""
    secret = get_settings().github_state_secret
    if not secret:
        raise APIError(
            code=ErrorCode.CONFIGURATION_ERROR,
            message="GitHub install state signing is not configured",
            status_code=500,
        )
    return {"state": issue_install_state(user_id, secret), "expires_in": INSTALL_STATE_TTL}
