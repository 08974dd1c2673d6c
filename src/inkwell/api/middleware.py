"""Request context middleware."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import logfire
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from inkwell.api.errors import generate_request_id

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and report how long it took.

    The dashboard backend may pass its own ``X-Request-ID`` so a publish can be
    traced across both services; otherwise one is generated. Error handlers
    read it back from ``request.state``.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        request.state.request_id = request_id
        started = time.perf_counter()

        with logfire.span(
            "{method} {path}",
            method=request.method,
            path=request.url.path,
            request_id=request_id,
        ):
            response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        return response
