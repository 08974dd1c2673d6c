"""GitHub App installation callback."""

from urllib.parse import urlencode

import logfire
from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.api.install_state import InvalidInstallStateError, verify_install_state
from inkwell.core.config import get_settings
from inkwell.db.session import get_session
from inkwell.db.store import save_installation

router = APIRouter()


def _settings_redirect(status: str, message: str) -> RedirectResponse:
    settings = get_settings()
    separator = "&" if "?" in settings.dashboard_url else "?"
    query = urlencode({"status": status, "message": message})
    return RedirectResponse(f"{settings.dashboard_url}{separator}{query}", status_code=302)


@router.get("/callback")
async def installation_callback(
    installation_id: int | None = None,
    setup_action: str | None = None,
    state: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> RedirectResponse:
    """Handle the redirect GitHub sends after the App is installed.

    ``state`` is the signed token the dashboard put into the install link; the
    installation is only stored for the user it names. The user always lands
    back on the settings page with a status message.
    """
    if setup_action != "install" or not installation_id or not state:
        logfire.warn(
            "Invalid GitHub installation callback",
            setup_action=setup_action,
            installation_id=installation_id,
        )
        return _settings_redirect("error", "Invalid GitHub installation callback received.")

    secret = get_settings().github_state_secret
    if not secret:
        logfire.error("GITHUB_STATE_SECRET is not set", installation_id=installation_id)
        return _settings_redirect("error", "GitHub connection is not configured on the server.")

    try:
        user_id = verify_install_state(state, secret)
    except InvalidInstallStateError as e:
        logfire.warn(
            "Rejected GitHub installation callback state",
            installation_id=installation_id,
            error=str(e),
        )
        return _settings_redirect(
            "error", "The GitHub connection link is invalid or has expired. Please try again."
        )

    try:
        await save_installation(session, user_id, installation_id)
    except SQLAlchemyError as e:
        logfire.error(
            "Error processing GitHub installation callback",
            installation_id=installation_id,
            error=str(e),
        )
        return _settings_redirect("error", "Could not save the GitHub installation. Please try again.")

    logfire.info("GitHub installation connected", user_id=user_id, installation_id=installation_id)
    return _settings_redirect("success", "GitHub App connected successfully!")
