"""Unit tests for API v1 endpoints."""

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fakes import STATE_SECRET, TEST_INSTALLATION_ID, FakeGitHub
from fastapi import FastAPI
from fastapi.testclient import TestClient

from inkwell.api.auth import verify_api_key
from inkwell.api.errors import APIError, api_error_handler, github_error_handler
from inkwell.api.install_state import verify_install_state
from inkwell.api.rate_limit import limiter
from inkwell.api.routes import api_v1
from inkwell.core.config import Settings
from inkwell.db.models import GitHubSettings
from inkwell.github import GitHubError, GitHubPublisher
from inkwell.publishing import PublishService


def create_test_app() -> FastAPI:
    """Create minimal test app without logfire instrumentation."""
    app = FastAPI()
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(GitHubError, github_error_handler)
    app.include_router(api_v1.router, prefix="/api/v1")
    app.dependency_overrides[verify_api_key] = lambda: True
    return app


def make_session(gh_settings: GitHubSettings | None = None) -> AsyncMock:
    session = AsyncMock()
    session.get.return_value = gh_settings
    session.add = MagicMock()
    return session


def connected_settings(**overrides) -> GitHubSettings:
    params = {
        "user_id": "user-1",
        "owner": "octo",
        "repo": "site",
        "branch": "main",
        "installation_id": TEST_INSTALLATION_ID,
    }
    params.update(overrides)
    return GitHubSettings(**params)


@pytest.fixture(autouse=True)
def no_rate_limit() -> Iterator[None]:
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def make_client(publisher: GitHubPublisher):
    """Build a test client whose session and GitHub side are faked."""

    def factory(gh_settings: GitHubSettings | None = None) -> tuple[TestClient, AsyncMock]:
        app = create_test_app()
        session = make_session(gh_settings)

        async def mock_session_gen():
            yield session

        async def mock_service_gen():
            yield PublishService(
                session,
                Settings(github_app_id=None, github_app_private_key=None, posts_dir="posts"),
                publisher=publisher,
            )

        async def mock_publisher_gen():
            yield publisher

        app.dependency_overrides[api_v1.get_session] = mock_session_gen
        app.dependency_overrides[api_v1.get_publish_service] = mock_service_gen
        app.dependency_overrides[api_v1.get_publisher] = mock_publisher_gen
        return TestClient(app), session

    return factory


class TestSettingsEndpoints:
    """Tests for /api/v1/users/{user_id}/settings."""

    def test_get_missing_settings(self, make_client) -> None:
        client, _ = make_client(None)

        response = client.get("/api/v1/users/user-1/settings")

        assert response.status_code == 404
        assert response.json()["error"] == "SETTINGS_NOT_FOUND"

    def test_get_settings(self, make_client) -> None:
        client, _ = make_client(connected_settings())

        response = client.get("/api/v1/users/user-1/settings")

        assert response.status_code == 200
        assert response.json() == {
            "user_id": "user-1",
            "owner": "octo",
            "repo": "site",
            "branch": "main",
            "installation_id": TEST_INSTALLATION_ID,
            "connected": True,
        }

    def test_save_new_settings(self, make_client) -> None:
        client, session = make_client(None)

        response = client.put(
            "/api/v1/users/user-1/settings",
            json={"owner": "octo", "repo": "site"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["branch"] == "main"
        assert data["installation_id"] is None
        assert data["connected"] is False
        session.add.assert_called_once()
        session.flush.assert_awaited()

    def test_save_keeps_installation(self, make_client) -> None:
        client, _ = make_client(connected_settings())

        response = client.put(
            "/api/v1/users/user-1/settings",
            json={"owner": "octo", "repo": "blog", "branch": "gh-pages"},
        )

        data = response.json()
        assert data["repo"] == "blog"
        assert data["branch"] == "gh-pages"
        assert data["installation_id"] == TEST_INSTALLATION_ID
        assert data["connected"] is True

    def test_save_requires_owner(self, make_client) -> None:
        client, _ = make_client(None)

        response = client.put("/api/v1/users/user-1/settings", json={"repo": "site"})

        assert response.status_code == 422


class TestBranchEndpoints:
    """Tests for the branch listing endpoints."""

    def test_user_branches(self, make_client) -> None:
        client, _ = make_client(connected_settings())

        response = client.get("/api/v1/users/user-1/branches")

        assert response.status_code == 200
        assert response.json() == {"branches": ["main", "drafts"]}

    def test_user_branches_not_connected(self, make_client) -> None:
        client, _ = make_client(connected_settings(installation_id=None))

        response = client.get("/api/v1/users/user-1/branches")

        assert response.status_code == 409
        data = response.json()
        assert data["error"] == "GITHUB_NOT_CONNECTED"
        assert data["details"]["kind"] == "not_connected"

    def test_branches_by_coordinates(self, make_client) -> None:
        client, _ = make_client()

        response = client.get(
            "/api/v1/branches",
            params={"owner": "octo", "repo": "site", "installation_id": TEST_INSTALLATION_ID},
        )

        assert response.status_code == 200
        assert response.json()["branches"] == ["main", "drafts"]

    def test_branches_of_empty_repository(self, make_client, fake_github: FakeGitHub) -> None:
        fake_github.add_repo("octo/empty", branches=[])
        client, _ = make_client()

        response = client.get(
            "/api/v1/branches",
            params={"owner": "octo", "repo": "empty", "installation_id": TEST_INSTALLATION_ID},
        )

        assert response.json() == {"branches": []}

    def test_branches_of_unknown_repository(self, make_client) -> None:
        client, _ = make_client()

        response = client.get(
            "/api/v1/branches",
            params={"owner": "octo", "repo": "gone", "installation_id": TEST_INSTALLATION_ID},
        )

        assert response.status_code == 404
        assert response.json()["details"]["github_status"] == 404

    def test_branches_require_installation_id(self, make_client) -> None:
        client, _ = make_client()

        response = client.get("/api/v1/branches", params={"owner": "octo", "repo": "site"})

        assert response.status_code == 422


class TestPublishEndpoint:
    """Tests for POST /api/v1/users/{user_id}/publish."""

    def test_publish(self, make_client, fake_github: FakeGitHub) -> None:
        client, _ = make_client(connected_settings())

        response = client.post(
            "/api/v1/users/user-1/publish",
            json={"title": "Hello", "slug": "hello-world", "content": "Hi there"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["path"] == "posts/hello-world.md"
        assert data["commit_sha"] == "commit0001"
        assert fake_github.file_content("octo/site", "posts/hello-world.md") is not None

    def test_publish_failure_is_reported_not_raised(self, make_client, fake_github: FakeGitHub) -> None:
        client, _ = make_client(connected_settings(branch="drafts"))

        response = client.post(
            "/api/v1/users/user-1/publish",
            json={"title": "Hello", "slug": "hello-world", "content": "Hi there"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_kind"] == "directory_missing"
        assert fake_github.puts == []

    def test_publish_requires_title(self, make_client) -> None:
        client, _ = make_client(connected_settings())

        response = client.post(
            "/api/v1/users/user-1/publish",
            json={"slug": "hello-world", "content": "Hi there"},
        )

        assert response.status_code == 422


class TestInstallStateEndpoint:
    """Tests for POST /api/v1/users/{user_id}/install-state."""

    def test_issues_signed_state(self, make_client) -> None:
        client, _ = make_client()

        with patch.object(api_v1, "get_settings") as mock_settings:
            mock_settings.return_value.github_state_secret = STATE_SECRET
            response = client.post("/api/v1/users/user-1/install-state")

        assert response.status_code == 200
        data = response.json()
        assert data["expires_in"] == 900
        assert verify_install_state(data["state"], STATE_SECRET) == "user-1"

    def test_requires_state_secret(self, make_client) -> None:
        client, _ = make_client()

        with patch.object(api_v1, "get_settings") as mock_settings:
            mock_settings.return_value.github_state_secret = None
            response = client.post("/api/v1/users/user-1/install-state")

        assert response.status_code == 500
        assert response.json()["error"] == "CONFIGURATION_ERROR"
