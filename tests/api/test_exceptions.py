"""Tests for API exception handling."""

import pytest
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError

from liveshop.api.exceptions import (
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    ExternalServiceError,
    LiveShopException,
    LiveShopValidationError,
    ResourceConflictError,
    ResourceNotFoundError,
    create_error_response,
    setup_exception_handlers,
    to_api_exception,
)
from liveshop.domain.exceptions import (
    BusinessRuleViolation,
    DomainException,
    EntityNotFoundError,
    InvalidStateTransition,
    StateTransitionInfo,
    ValidationError,
    ValidationErrors,
)
from liveshop.infrastructure.mux import MuxError


class TestCustomExceptions:
    """Test custom exception classes."""

    def test_base_exception(self):
        exc = LiveShopException(
            message="Test error",
            status_code=400,
            error_code="TEST_ERROR",
            details={"key": "value"},
        )

        assert exc.message == "Test error"
        assert exc.status_code == 400
        assert exc.error_code == "TEST_ERROR"
        assert exc.details == {"key": "value"}
        assert str(exc) == "Test error"

    def test_authentication_error_defaults(self):
        exc = AuthenticationError()

        assert exc.message == "Authentication failed"
        assert exc.status_code == 401
        assert exc.error_code == "AUTHENTICATION_FAILED"

    def test_resource_not_found_error(self):
        exc = ResourceNotFoundError("Stream", "abc", {"shop": "demo"})

        assert exc.message == "Stream with ID 'abc' not found"
        assert exc.status_code == 404
        assert exc.details == {"resource": "Stream", "resource_id": "abc", "shop": "demo"}

    def test_external_service_error_defaults(self):
        exc = ExternalServiceError("mux")

        assert exc.message == "External service 'mux' is unavailable"
        assert exc.status_code == 502
        assert exc.details == {"service": "mux"}

    def test_configuration_error(self):
        exc = ConfigurationError("Migration job secret is not configured")

        assert exc.status_code == 500
        assert exc.error_code == "CONFIGURATION_ERROR"


class TestCreateErrorResponse:
    def test_minimal(self):
        assert create_error_response(404, "Missing", "NOT_FOUND") == {
            "error": {"code": "NOT_FOUND", "message": "Missing", "status_code": 404},
            "success": False,
        }

    def test_with_details_and_request_id(self):
        response = create_error_response(
            422, "Bad", "VALIDATION_ERROR", details={"x": 1}, request_id="req-1"
        )

        assert response["error"]["details"] == {"x": 1}
        assert response["request_id"] == "req-1"


class TestToApiException:
    def test_validation(self):
        exc = to_api_exception(
            ValidationError(ValidationErrors({"title": "Title is required"}))
        )

        assert isinstance(exc, LiveShopValidationError)
        assert exc.status_code == 422
        assert exc.message == "Title is required"
        assert exc.details == {"field_errors": {"title": "Title is required"}}

    def test_not_found(self):
        exc = to_api_exception(EntityNotFoundError("LiveStream", "s-1"))

        assert isinstance(exc, ResourceNotFoundError)
        assert exc.details["resource_id"] == "s-1"

    def test_state_transition_is_conflict_not_bad_request(self):
        exc = to_api_exception(
            InvalidStateTransition(
                StateTransitionInfo(
                    from_state="DRAFT",
                    to_state="ENDED",
                    allowed_states=["LIVE"],
                    entity_type="LiveStream",
                    entity_id="s-1",
                )
            )
        )

        assert isinstance(exc, ResourceConflictError)
        assert exc.status_code == 409
        assert exc.details["from_state"] == "DRAFT"
        assert exc.details["allowed_states"] == ["LIVE"]

    def test_business_rule(self):
        exc = to_api_exception(
            BusinessRuleViolation("Stream is already prepared", entity_id="s-1")
        )

        assert isinstance(exc, BadRequestError)
        assert exc.status_code == 400
        assert exc.details == {"entity_id": "s-1"}

    def test_unmapped_domain_error_is_internal(self):
        exc = to_api_exception(DomainException("Lineup is corrupt"))

        assert type(exc) is LiveShopException
        assert exc.status_code == 500
        assert exc.message == "Lineup is corrupt"


def build_app(settings):
    app = FastAPI()
    setup_exception_handlers(app, settings)

    @app.get("/mux")
    async def mux_failure():
        raise MuxError("upstream timed out", status=504)

    @app.get("/conflict")
    async def conflict():
        raise IntegrityError("INSERT", {}, Exception("duplicate"))

    @app.get("/db-down")
    async def db_down():
        raise OperationalError("SELECT 1", {}, Exception("refused"))

    @app.get("/teapot")
    async def teapot():
        raise HTTPException(status_code=403, detail="Nope")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaput")

    return app


async def call(app, path):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        return await ac.get(path)


class TestRegisteredHandlers:
    @pytest.mark.asyncio
    async def test_mux_error_includes_upstream_status(self, test_settings):
        response = await call(build_app(test_settings), "/mux")

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["code"] == "EXTERNAL_SERVICE_ERROR"
        assert error["details"] == {"service": "mux", "upstream_status": 504}
        assert "upstream timed out" in error["message"]

    @pytest.mark.asyncio
    async def test_mux_error_message_hidden_in_production(self, test_settings):
        settings = test_settings.model_copy(update={"environment": "production"})

        response = await call(build_app(settings), "/mux")

        assert response.json()["error"]["message"] == "Video platform request failed"

    @pytest.mark.asyncio
    async def test_integrity_error_is_conflict(self, test_settings):
        response = await call(build_app(test_settings), "/conflict")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DATABASE_INTEGRITY_ERROR"

    @pytest.mark.asyncio
    async def test_operational_error_is_unavailable(self, test_settings):
        response = await call(build_app(test_settings), "/db-down")

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_http_exception(self, test_settings):
        response = await call(build_app(test_settings), "/teapot")

        assert response.status_code == 403
        assert response.json()["error"] == {
            "code": "FORBIDDEN",
            "message": "Nope",
            "status_code": 403,
        }

    @pytest.mark.asyncio
    async def test_unhandled_exception(self, test_settings):
        response = await call(build_app(test_settings), "/boom")

        assert response.status_code == 500
        assert response.json()["error"]["message"] == "RuntimeError: kaput"
