"""Rate limiting configuration for API endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from inkwell.core.config import get_settings


def get_rate_limit_key(request: Request) -> str:
    """Rate limit per user when the route is user-scoped, else per client IP."""
    user_id = request.path_params.get("user_id")
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


# In-memory storage in development, Redis elsewhere
settings = get_settings()
limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=["100/minute"],
    storage_uri=str(settings.redis_url) if settings.environment != "development" else None,
    strategy="fixed-window",
)

# Format: "requests/period" where period can be second, minute, hour, day
RATE_LIMITS = {
    # Each publish is up to two commits plus lookups against GitHub
    "publish": "10/minute",
    "branches": "30/minute",
    "settings": "30/minute",
}
