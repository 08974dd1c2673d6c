"""Persistence helpers for per-user GitHub settings."""

import logfire
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.db.models import GitHubSettings


async def get_github_settings(session: AsyncSession, user_id: str) -> GitHubSettings | None:
    """Load a user's settings row, if any."""
    return await session.get(GitHubSettings, user_id)


async def save_github_settings(
    session: AsyncSession,
    user_id: str,
    owner: str,
    repo: str,
    branch: str = "main",
) -> GitHubSettings:
    """Create or update the repository coordinates, keeping the installation."""
    settings = await session.get(GitHubSettings, user_id)
    if settings is None:
        settings = GitHubSettings(user_id=user_id)
        session.add(settings)

    settings.owner = owner
    settings.repo = repo
    settings.branch = branch or "main"
    await session.flush()

    logfire.info("Saved GitHub settings", user_id=user_id, repo=f"{owner}/{repo}", branch=branch)
    return settings


async def save_installation(
    session: AsyncSession,
    user_id: str,
    installation_id: int,
) -> GitHubSettings:
    """Attach a GitHub App installation to a user's settings."""
    settings = await session.get(GitHubSettings, user_id)
    if settings is None:
        settings = GitHubSettings(user_id=user_id, branch="main")
        session.add(settings)

    settings.installation_id = installation_id
    await session.flush()

    logfire.info("Saved GitHub installation", user_id=user_id, installation_id=installation_id)
    return settings


async def clear_installation(session: AsyncSession, installation_id: int) -> int:
    """Drop ``installation_id`` from every settings row referencing it.

    Returns:
        Number of rows updated
    """
    result = await session.execute(
        update(GitHubSettings)
        .where(GitHubSettings.installation_id == installation_id)
        .values(installation_id=None)
    )
    count = result.rowcount or 0

    logfire.info("Cleared GitHub installation", installation_id=installation_id, settings_updated=count)
    return count

