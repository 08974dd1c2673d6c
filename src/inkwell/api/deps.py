"""FastAPI dependencies wiring the GitHub integration."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.core.config import get_settings
from inkwell.db.session import get_session
from inkwell.github import GitHubPublisher, TokenCache
from inkwell.publishing import PublishService


@lru_cache
def get_token_cache() -> TokenCache:
    """Process-wide installation token cache."""
    return TokenCache()


async def get_publisher() -> AsyncGenerator[GitHubPublisher, None]:
    """GitHub publisher for the request; fails with ConfigurationError without credentials."""
    publisher = GitHubPublisher.from_settings(get_settings(), token_cache=get_token_cache())
    try:
        yield publisher
    finally:
        await publisher.close()


async def get_publish_service(
    session: AsyncSession = Depends(get_session),
) -> AsyncGenerator[PublishService, None]:
    """Publish service bound to the request's database session."""
    service = PublishService(session, get_settings(), token_cache=get_token_cache())
    try:
        yield service
    finally:
        await service.close()
