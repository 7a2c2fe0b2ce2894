"""Error handling middleware.

Catches anything that escaped the exception handlers and renders it in
the standard error envelope.
"""

import logging
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from liveshop.api.exceptions import create_error_response
from liveshop.core.config import get_settings

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware to handle unhandled exceptions and provide consistent error responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return await self._handle_exception(request, exc)

    async def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """Log the failure and build a 500 response."""
        request_id = getattr(request.state, "request_id", None)

        logger.error(
            f"Unhandled exception in middleware: {type(exc).__name__}",
            extra={
                "request_id": request_id,
                "path": str(request.url),
                "method": request.method,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "client_ip": self._get_client_ip(request),
            },
            exc_info=True,
        )

        settings = getattr(request.app.state, "settings", None) or get_settings()

        # Don't expose internal error details in production
        if settings.is_production:
            message = "An internal server error occurred"
            details = None
        else:
            message = f"{type(exc).__name__}: {str(exc)}"
            details = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=create_error_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                message=message,
                error_code="INTERNAL_SERVER_ERROR",
                details=details,
                request_id=request_id,
            ),
        )

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
