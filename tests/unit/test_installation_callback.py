"""Unit tests for the GitHub App installation callback."""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlsplit

import jwt
import pytest
from fakes import STATE_SECRET
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from inkwell.api.install_state import (
    INSTALL_STATE_AUDIENCE,
    InvalidInstallStateError,
    issue_install_state,
    verify_install_state,
)
from inkwell.api.routes import github

DASHBOARD_URL = "https://app.example.com/dashboard/settings"


@pytest.fixture
def callback_client():
    app = FastAPI()
    app.include_router(github.router, prefix="/github")

    session = AsyncMock()

    async def mock_session_gen():
        yield session

    app.dependency_overrides[github.get_session] = mock_session_gen

    with (
        patch.object(github, "get_settings") as mock_settings,
        patch.object(github, "save_installation", new_callable=AsyncMock) as mock_save,
    ):
        mock_settings.return_value.dashboard_url = DASHBOARD_URL
        mock_settings.return_value.github_state_secret = STATE_SECRET
        yield TestClient(app, follow_redirects=False), mock_settings.return_value, session, mock_save


def redirect_query(response) -> dict[str, str]:
    location = response.headers["location"]
    assert location.startswith(DASHBOARD_URL)
    return {key: values[0] for key, values in parse_qs(urlsplit(location).query).items()}


def callback_params(state: str) -> dict:
    return {"installation_id": 777, "setup_action": "install", "state": state}


class TestInstallState:
    """Tests for signing and verifying the install link state."""

    def test_round_trip(self) -> None:
        state = issue_install_state("user-1", STATE_SECRET)

        assert verify_install_state(state, STATE_SECRET) == "user-1"

    def test_claims(self) -> None:
        state = issue_install_state("user-1", STATE_SECRET, ttl=60, now=1_700_000_000)

        payload = jwt.decode(
            state,
            STATE_SECRET,
            algorithms=["HS256"],
            audience=INSTALL_STATE_AUDIENCE,
            options={"verify_exp": False},
        )
        assert payload == {
            "sub": "user-1",
            "aud": INSTALL_STATE_AUDIENCE,
            "iat": 1_700_000_000,
            "exp": 1_700_000_060,
        }

    def test_plain_user_id_rejected(self) -> None:
        with pytest.raises(InvalidInstallStateError):
            verify_install_state("user-1", STATE_SECRET)

    def test_wrong_secret_rejected(self) -> None:
        state = issue_install_state("user-1", "another-secret")

        with pytest.raises(InvalidInstallStateError):
            verify_install_state(state, STATE_SECRET)

    def test_expired_rejected(self) -> None:
        state = issue_install_state("user-1", STATE_SECRET, ttl=60, now=1_000_000_000)

        with pytest.raises(InvalidInstallStateError):
            verify_install_state(state, STATE_SECRET)

    def test_other_audience_rejected(self) -> None:
        state = jwt.encode(
            {"sub": "user-1", "aud": "someone-else", "exp": 4_000_000_000},
            STATE_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidInstallStateError):
            verify_install_state(state, STATE_SECRET)


class TestInstallationCallback:
    """Tests for GET /github/callback."""

    def test_successful_install(self, callback_client) -> None:
        client, _, session, mock_save = callback_client

        response = client.get(
            "/github/callback", params=callback_params(issue_install_state("user-1", STATE_SECRET))
        )

        assert response.status_code == 302
        assert redirect_query(response) == {
            "status": "success",
            "message": "GitHub App connected successfully!",
        }
        mock_save.assert_awaited_once_with(session, "user-1", 777)

    @pytest.mark.parametrize(
        "params",
        [
            {"setup_action": "install", "state": "signed"},
            {"installation_id": 777, "setup_action": "update", "state": "signed"},
            {"installation_id": 777, "setup_action": "install"},
        ],
    )
    def test_invalid_callback(self, callback_client, params: dict) -> None:
        client, _, _, mock_save = callback_client
        if "state" in params:
            params["state"] = issue_install_state("user-1", STATE_SECRET)

        response = client.get("/github/callback", params=params)

        assert response.status_code == 302
        query = redirect_query(response)
        assert query["status"] == "error"
        assert query["message"] == "Invalid GitHub installation callback received."
        mock_save.assert_not_awaited()

    @pytest.mark.parametrize(
        "state",
        [
            "attacker",
            issue_install_state("victim", "guessed-secret"),
            issue_install_state("user-1", STATE_SECRET, ttl=60, now=1_000_000_000),
        ],
        ids=["unsigned", "forged", "expired"],
    )
    def test_untrusted_state_never_saves(self, callback_client, state: str) -> None:
        client, _, _, mock_save = callback_client

        response = client.get("/github/callback", params=callback_params(state))

        assert response.status_code == 302
        query = redirect_query(response)
        assert query["status"] == "error"
        assert "invalid or has expired" in query["message"]
        mock_save.assert_not_awaited()

    def test_missing_state_secret(self, callback_client) -> None:
        client, settings, _, mock_save = callback_client
        state = issue_install_state("user-1", STATE_SECRET)
        settings.github_state_secret = None

        response = client.get("/github/callback", params=callback_params(state))

        assert redirect_query(response)["status"] == "error"
        mock_save.assert_not_awaited()

    def test_database_failure(self, callback_client) -> None:
        client, _, _, mock_save = callback_client
        mock_save.side_effect = OperationalError("UPDATE", {}, Exception("connection lost"))

        response = client.get(
            "/github/callback", params=callback_params(issue_install_state("user-1", STATE_SECRET))
        )

        assert response.status_code == 302
        assert redirect_query(response)["status"] == "error"
