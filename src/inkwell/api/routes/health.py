"""Health check endpoints."""

from fastapi import APIRouter

from inkwell import __version__
from inkwell.core.config import get_settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "healthy", "version": __version__}


@router.get("/ready")
async def readiness_check() -> dict[str, str]:
    """Readiness check - reports whether the GitHub App is configured.

    Missing credentials do not fail startup; they fail the first publish.
    """
    settings = get_settings()
    configured = bool(settings.github_app_id and settings.github_app_private_key)
    return {
        "status": "ready",
        "github_app": "configured" if configured else "not_configured",
    }
