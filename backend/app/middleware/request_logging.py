"""
Request/response logging middleware for tracking API interactions.
"""
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable

from app.core.logging_config import request_id_context

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log incoming requests and outgoing responses.

    Logs:
    - Request method and path
    - Response status code and duration
    - User identifier (token preview from the auth header, if present)
    - A warning for requests slower than `slow_request_threshold` seconds

    Every response carries an X-Request-ID header; an incoming X-Request-ID is
    reused so clients can correlate their own logs.
    """

    def __init__(self, app, slow_request_threshold: float = 1.0):
        """
        Initialize request logging middleware.

        Args:
            app: FastAPI application
            slow_request_threshold: Seconds after which a request is logged as slow
        """
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    @staticmethod
    def _user_identifier(request: Request) -> str:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            # First few chars only, never the full token
            return f"token:{auth_header[7:17]}..."
        return "anonymous"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and log details.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint in chain

        Returns:
            Response from the endpoint
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        context_token = request_id_context.set(request_id)
        try:
            return await self._handle(request, call_next, request_id)
        finally:
            request_id_context.reset(context_token)

    async def _handle(
        self, request: Request, call_next: Callable, request_id: str
    ) -> Response:
        start_time = time.time()
        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"
        user_identifier = self._user_identifier(request)

        logger.debug(
            "Incoming request",
            extra={
                "method": method,
                "path": path,
                "client_host": client_host,
                "user_identifier": user_identifier,
            },
        )

        response = await call_next(request)

        duration = time.time() - start_time
        status_code = response.status_code
        response.headers["X-Request-ID"] = request_id

        extra_fields = {
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": round(duration * 1000, 2),
            "client_host": client_host,
            "user_identifier": user_identifier,
        }

        if status_code >= 500:
            logger.error("Server error response", extra=extra_fields)
        elif status_code >= 400:
            logger.warning("Client error response", extra=extra_fields)
        else:
            logger.info("Request completed", extra=extra_fields)

        if duration > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {method} {path} took {duration:.3f}s",
                extra=extra_fields,
            )

        return response
