"""Exception handlers and custom exceptions for the live shopping API.

This module defines the API exception hierarchy, maps domain and Mux
failures onto HTTP responses, and registers global exception handlers
so every error leaves the service in the same envelope.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import (
    DatabaseError,
    IntegrityError,
    OperationalError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from liveshop.core.config import get_settings
from liveshop.domain.exceptions import (
    BusinessRuleViolation,
    DomainException,
    EntityNotFoundError,
    InvalidStateTransition,
    ValidationError,
)
from liveshop.infrastructure.mux import MuxError

logger = logging.getLogger(__name__)


class LiveShopException(Exception):
    """Base exception class for the live shopping API."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: Dict[str, Any] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(LiveShopException):
    """Exception raised when the caller's shop or signature cannot be verified."""

    def __init__(
        self, message: str = "Authentication failed", details: Dict[str, Any] = None
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTHENTICATION_FAILED",
            details=details,
        )


class ResourceNotFoundError(LiveShopException):
    """Exception raised when a resource is not found."""

    def __init__(
        self,
        resource: str,
        resource_id: Any,
        details: Dict[str, Any] = None,
    ):
        message = f"{resource} with ID '{resource_id}' not found"
        default_details = {"resource": resource, "resource_id": str(resource_id)}
        if details:
            default_details.update(details)
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
            details=default_details,
        )


class BadRequestError(LiveShopException):
    """Exception raised when a request is understood but cannot be honoured."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BUSINESS_RULE_VIOLATION",
            details=details,
        )


class ResourceConflictError(LiveShopException):
    """Exception raised when the resource is in the wrong state for the action."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="INVALID_STATE_TRANSITION",
            details=details,
        )


class LiveShopValidationError(LiveShopException):
    """Exception raised for validation errors."""

    def __init__(self, message: str, field_errors: Dict[str, Any] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_ERROR",
            details={"field_errors": field_errors or {}},
        )


class ExternalServiceError(LiveShopException):
    """Exception raised when an upstream service call fails."""

    def __init__(
        self, service: str, message: str = None, details: Dict[str, Any] = None
    ):
        message = message or f"External service '{service}' is unavailable"
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code="EXTERNAL_SERVICE_ERROR",
            details=details or {"service": service},
        )


class ConfigurationError(LiveShopException):
    """Exception raised when a required secret or setting is missing."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="CONFIGURATION_ERROR",
        )


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Dict[str, Any] = None,
    request_id: str = None,
) -> Dict[str, Any]:
    """Create standardized error response format.

    Args:
        status_code: HTTP status code
        message: Error message
        error_code: Application-specific error code
        details: Additional error details
        request_id: Request ID for tracing

    Returns:
        Dict: Standardized error response
    """
    response = {
        "error": {"code": error_code, "message": message, "status_code": status_code},
        "success": False,
    }

    if details:
        response["error"]["details"] = details

    if request_id:
        response["request_id"] = request_id

    return response


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None) or get_settings()
    return settings.is_production


def to_api_exception(exc: DomainException) -> LiveShopException:
    """Translate a domain exception into its HTTP counterpart."""
    if isinstance(exc, ValidationError):
        return LiveShopValidationError(exc.message, field_errors=exc.errors)
    if isinstance(exc, EntityNotFoundError):
        return ResourceNotFoundError(exc.context.entity_type, exc.context.entity_id)
    if isinstance(exc, InvalidStateTransition):
        return ResourceConflictError(exc.message, details=exc.context.to_dict())
    if isinstance(exc, BusinessRuleViolation):
        return BadRequestError(exc.message, details=exc.context.to_dict())
    return LiveShopException(exc.message)


async def liveshop_exception_handler(
    request: Request, exc: LiveShopException
) -> JSONResponse:
    """Handle custom API exceptions."""
    request_id = getattr(request.state, "request_id", None)

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"LiveShopException: {exc.error_code} - {exc.message}",
        extra={
            "request_id": request_id,
            "status_code": exc.status_code,
            "error_code": exc.error_code,
            "details": exc.details,
            "path": str(request.url),
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            status_code=exc.status_code,
            message=exc.message,
            error_code=exc.error_code,
            details=exc.details,
            request_id=request_id,
        ),
    )


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Handle domain rule failures raised by the workflows."""
    return await liveshop_exception_handler(request, to_api_exception(exc))


async def mux_exception_handler(request: Request, exc: MuxError) -> JSONResponse:
    """Handle Mux API failures that survived retries."""
    details = {"service": "mux"}
    if exc.status is not None:
        details["upstream_status"] = exc.status

    message = "Video platform request failed"
    if not _is_production(request):
        message = f"{message}: {exc}"

    return await liveshop_exception_handler(
        request, ExternalServiceError("mux", message=message, details=details)
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    request_id = getattr(request.state, "request_id", None)

    # Map HTTP status codes to error codes
    error_code_mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "UNPROCESSABLE_ENTITY",
        500: "INTERNAL_SERVER_ERROR",
        502: "BAD_GATEWAY",
        503: "SERVICE_UNAVAILABLE",
    }

    error_code = error_code_mapping.get(exc.status_code, "HTTP_ERROR")

    logger.warning(
        f"HTTPException: {error_code} - {exc.detail}",
        extra={
            "request_id": request_id,
            "status_code": exc.status_code,
            "error_code": error_code,
            "path": str(request.url),
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            status_code=exc.status_code,
            message=str(exc.detail),
            error_code=error_code,
            request_id=request_id,
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request body and parameter validation errors."""
    request_id = getattr(request.state, "request_id", None)

    field_errors = {}
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = {
            "message": error["msg"],
            "type": error["type"],
        }

    logger.warning(
        "ValidationError: Request validation failed",
        extra={
            "request_id": request_id,
            "field_errors": field_errors,
            "path": str(request.url),
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=create_error_response(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="Request validation failed",
            error_code="VALIDATION_ERROR",
            details={"field_errors": field_errors},
            request_id=request_id,
        ),
    )


async def database_exception_handler(
    request: Request, exc: DatabaseError
) -> JSONResponse:
    """Handle database exceptions."""
    request_id = getattr(request.state, "request_id", None)

    if isinstance(exc, IntegrityError):
        error_code = "DATABASE_INTEGRITY_ERROR"
        message = "Database constraint violation"
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, OperationalError):
        error_code = "DATABASE_OPERATIONAL_ERROR"
        message = "Database operation failed"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        error_code = "DATABASE_ERROR"
        message = "Database error occurred"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        f"DatabaseError: {error_code} - {str(exc)}",
        extra={
            "request_id": request_id,
            "error_code": error_code,
            "exception_type": type(exc).__name__,
            "path": str(request.url),
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=create_error_response(
            status_code=status_code,
            message=message,
            error_code=error_code,
            request_id=request_id,
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", None)

    logger.error(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={
            "request_id": request_id,
            "exception_type": type(exc).__name__,
            "path": str(request.url),
            "method": request.method,
        },
        exc_info=True,
    )

    # Don't expose internal error details in production
    if _is_production(request):
        message = "Internal server error"
    else:
        message = f"{type(exc).__name__}: {str(exc)}"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=message,
            error_code="INTERNAL_SERVER_ERROR",
            request_id=request_id,
        ),
    )


def setup_exception_handlers(app: FastAPI, settings: Optional[Any] = None) -> None:
    """Setup all exception handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
        settings: Settings used to decide how much detail errors expose
    """
    app.state.settings = settings or get_settings()

    app.add_exception_handler(LiveShopException, liveshop_exception_handler)
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(MuxError, mux_exception_handler)

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.add_exception_handler(DatabaseError, database_exception_handler)
    app.add_exception_handler(IntegrityError, database_exception_handler)
    app.add_exception_handler(OperationalError, database_exception_handler)

    # Catch-all exception handler
    app.add_exception_handler(Exception, generic_exception_handler)
