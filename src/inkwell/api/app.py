"""FastAPI application setup."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import logfire
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from inkwell import __version__
from inkwell.api.errors import (
    APIError,
    ErrorCode,
    ErrorResponse,
    api_error_handler,
    error_json,
    get_request_id,
    github_error_handler,
    http_exception_handler,
    validation_exception_handler,
)
from inkwell.api.middleware import RequestContextMiddleware
from inkwell.api.rate_limit import limiter
from inkwell.api.routes import api_v1, github, health, webhooks
from inkwell.core.config import get_settings
from inkwell.db.session import close_db
from inkwell.github.errors import GitHubError


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    settings = get_settings()

    logfire.configure(
        service_name="inkwell",
        environment=settings.environment,
    )
    if not (settings.github_app_id and settings.github_app_private_key):
        logfire.warn("GitHub App credentials not configured; publishing will fail")

    yield

    await close_db()


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Rate limit exceeded handler in the standard error format."""
    retry_after = 60
    response = ErrorResponse(
        error=ErrorCode.RATE_LIMIT_EXCEEDED.value,
        message=f"Rate limit exceeded ({exc.detail}). Please slow down your requests.",
        request_id=get_request_id(request),
        details={"retry_after_seconds": retry_after},
        suggestion=f"Wait {retry_after} seconds before retrying",
    )
    return error_json(429, response, headers={"Retry-After": str(retry_after)})


def register_error_handlers(app: FastAPI) -> None:
    """Install the consistent error handlers on ``app``."""
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(GitHubError, github_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Inkwell API",
        description="Publish content to GitHub repositories through a GitHub App",
        version=__version__,
        lifespan=lifespan,
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(RequestContextMiddleware)

    logfire.instrument_fastapi(app)

    app.state.limiter = limiter
    register_error_handlers(app)

    # Routes
    app.include_router(health.router, tags=["health"])
    app.include_router(github.router, prefix="/github", tags=["github"])
    app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
    app.include_router(api_v1.router, prefix="/api/v1", tags=["api"])

    return app


app = create_app()
