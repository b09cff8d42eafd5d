"""
Middleware and exception handler registration for the FastAPI application.
"""

import time
import uuid
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from rentals.config.logging import get_logger
from rentals.core.exceptions import BaseAppException

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Adds a request ID to each request.

    Reuses an upstream X-Request-ID when present, stores it in
    request.state.request_id and echoes it in the response headers.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """Logs request duration and adds the X-Process-Time header."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        logger.info(
            "Request completed",
            extra={
                "request_id": getattr(request.state, "request_id", "unknown"),
                "method": request.method,
                "url": str(request.url.path),
                "status_code": response.status_code,
                "process_time": f"{process_time:.4f}s",
            }
        )
        return response


async def app_exception_handler(request: Request, exc: BaseAppException) -> JSONResponse:
    level = logger.error if exc.status_code >= 500 else logger.info
    level(
        f"Request failed: {exc}",
        extra={
            "request_id": get_request_id(request),
            "error_code": exc.error_code.value,
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_middlewares(app: FastAPI) -> None:
    """
    Register core middlewares and exception handlers.

    Middlewares run in reverse order of registration, so the request ID is
    assigned before timing is measured.
    """
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(BaseAppException, app_exception_handler)


def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)
