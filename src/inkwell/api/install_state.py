"""Signed ``state`` values for the GitHub App install link.

GitHub hands ``state`` back to the installation callback untouched, and the
callback has no session of its own, so the user id travels inside a short-lived
HS256 token. The dashboard backend asks the API for one right before it sends
the user to GitHub.
"""

import time

import jwt

INSTALL_STATE_AUDIENCE = "inkwell:github-install"
INSTALL_STATE_TTL = 15 * 60


class InvalidInstallStateError(Exception):
    """The callback state is missing, forged, or expired."""


def issue_install_state(
    user_id: str,
    secret: str,
    ttl: int = INSTALL_STATE_TTL,
    now: float | None = None,
) -> str:
    """Sign ``user_id`` into a state token valid for ``ttl`` seconds."""
    issued_at = int(now if now is not None else time.time())
    payload = {
        "sub": user_id,
        "aud": INSTALL_STATE_AUDIENCE,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def verify_install_state(state: str, secret: str) -> str:
    """Return the user id carried by ``state``.

    Raises:
        InvalidInstallStateError: If the signature, audience or expiry is wrong
    """
    try:
        payload = jwt.decode(
            state,
            secret,
            algorithms=["HS256"],
            audience=INSTALL_STATE_AUDIENCE,
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError as e:
        raise InvalidInstallStateError(str(e)) from e

    user_id = payload["sub"]
    if not isinstance(user_id, str) or not user_id:
        raise InvalidInstallStateError("State carries no user id")
    return user_id
