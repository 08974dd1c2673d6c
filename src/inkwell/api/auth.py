"""API key authentication for the Inkwell API."""

import secrets

import logfire
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from inkwell.core.config import get_settings

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> bool:
    """Verify the X-API-Key header on protected endpoints.

    The API is called by the dashboard backend, never by browsers directly.
    Without a configured key, requests are allowed in development only.

    Raises:
        HTTPException: If authentication fails
    """
    settings = get_settings()

    if not settings.api_key:
        if settings.environment != "development":
            logfire.error(
                "API key not configured outside development",
                environment=settings.environment,
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="API authentication not configured",
            )
        return True

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    # Constant-time comparison
    if not secrets.compare_digest(api_key, settings.api_key):
        logfire.warn("Invalid API key provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return True
