"""Fixtures for integration tests."""

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
from fakes import STATE_SECRET, WEBHOOK_SECRET, InMemorySession
from fastapi import FastAPI
from fastapi.testclient import TestClient

from inkwell.api.auth import verify_api_key
from inkwell.api.deps import get_publish_service, get_publisher, get_token_cache
from inkwell.api.errors import APIError, api_error_handler, github_error_handler
from inkwell.api.rate_limit import limiter
from inkwell.api.routes import api_v1, github, webhooks
from inkwell.core.config import Settings
from inkwell.db.session import get_session
from inkwell.github import GitHubError, GitHubPublisher, TokenCache
from inkwell.publishing import PublishService

DASHBOARD_URL = "https://app.example.com/dashboard/settings"


@pytest.fixture
def session() -> InMemorySession:
    return InMemorySession()


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        github_app_id=None,
        github_app_private_key=None,
        github_webhook_secret=WEBHOOK_SECRET,
        github_state_secret=STATE_SECRET,
        dashboard_url=DASHBOARD_URL,
        posts_dir="posts",
    )


@pytest.fixture
def test_app(
    session: InMemorySession,
    app_settings: Settings,
    publisher: GitHubPublisher,
    token_cache: TokenCache,
) -> Iterator[FastAPI]:
    """Create a test FastAPI app without logfire instrumentation."""
    app = FastAPI()
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(GitHubError, github_error_handler)
    app.include_router(github.router, prefix="/github")
    app.include_router(webhooks.router, prefix="/webhooks")
    app.include_router(api_v1.router, prefix="/api/v1")

    async def session_gen():
        yield session
        await session.commit()

    async def service_gen():
        yield PublishService(session, app_settings, token_cache=token_cache, publisher=publisher)

    async def publisher_gen():
        yield publisher

    app.dependency_overrides[verify_api_key] = lambda: True
    app.dependency_overrides[get_session] = session_gen
    app.dependency_overrides[get_publish_service] = service_gen
    app.dependency_overrides[get_publisher] = publisher_gen
    app.dependency_overrides[get_token_cache] = lambda: token_cache

    limiter.enabled = False
    with (
        patch.object(api_v1, "get_settings", return_value=app_settings),
        patch.object(github, "get_settings", return_value=app_settings),
        patch.object(webhooks, "get_settings", return_value=app_settings),
    ):
        yield app
    limiter.enabled = True


@pytest.fixture
def client(test_app: FastAPI) -> TestClient:
    """Create a test client."""
    return TestClient(test_app, follow_redirects=False)


@pytest.fixture
def mock_celery() -> Iterator[MagicMock]:
    with patch.object(webhooks, "celery_app") as mock:
        yield mock
