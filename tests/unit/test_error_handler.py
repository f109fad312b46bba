"""
Tests for error handler middleware and custom exceptions.
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from src.api.middleware.error_handler import (
    AppException,
    NotFoundException,
    UnauthorizedException,
    ForbiddenException,
    BadRequestException,
    InvalidStateException,
    ValidationException,
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
)


@pytest.mark.unit
def test_app_exception_creation():
    """Test creating custom AppException."""
    exc = AppException(
        message="Test error",
        status_code=500,
        details={"key": "value"},
    )

    assert exc.message == "Test error"
    assert exc.status_code == 500
    assert exc.details == {"key": "value"}
    assert exc.error_code == "internal_error"


@pytest.mark.unit
def test_not_found_exception():
    exc = NotFoundException("Booking", "123")

    assert exc.message == "Booking with id '123' not found"
    assert exc.status_code == 404
    assert exc.error_code == "not_found"
    assert exc.details["resource"] == "Booking"
    assert exc.details["resource_id"] == "123"


@pytest.mark.unit
def test_not_found_exception_custom_message():
    exc = NotFoundException("Business", "abc", message="Business not found")

    assert exc.message == "Business not found"
    assert exc.details["resource_id"] == "abc"


@pytest.mark.unit
def test_unauthorized_exception():
    exc = UnauthorizedException()

    assert exc.message == "Unauthorized"
    assert exc.status_code == 401
    assert exc.error_code == "unauthorized"


@pytest.mark.unit
def test_forbidden_exception():
    exc = ForbiddenException("You cannot review your own business")

    assert exc.status_code == 403
    assert exc.error_code == "forbidden"


@pytest.mark.unit
def test_bad_request_exception():
    exc = BadRequestException("Invalid input", details={"field": "price"})

    assert exc.status_code == 400
    assert exc.error_code == "bad_request"
    assert exc.details == {"field": "price"}


@pytest.mark.unit
def test_invalid_state_is_a_bad_request():
    """Invalid state keeps the 400 status but carries its own code."""
    exc = InvalidStateException(
        "Cannot cancel a completed or already cancelled booking",
        details={"status": "completed"},
    )

    assert isinstance(exc, BadRequestException)
    assert exc.status_code == 400
    assert exc.error_code == "invalid_state"


@pytest.mark.unit
def test_validation_exception():
    exc = ValidationException("Invalid review ratings", errors={"rating": "required"})

    assert exc.status_code == 422
    assert exc.error_code == "validation"
    assert exc.details["errors"] == {"rating": "required"}


@pytest.mark.integration
def test_app_exception_handler_in_route():
    """Domain errors render in the failure envelope."""
    app = FastAPI()
    app.add_exception_handler(AppException, app_exception_handler)

    @app.get("/test-error")
    async def test_error():
        raise InvalidStateException(
            "This business owner has not set up a verified bank account.",
            details={"reason": "business_not_payout_ready"},
        )

    client = TestClient(app)
    response = client.get("/test-error")

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["code"] == "invalid_state"
    assert data["details"]["reason"] == "business_not_payout_ready"
    assert "correlation_id" in data


@pytest.mark.integration
def test_validation_error_handler():
    """Test Pydantic validation error handler."""
    app = FastAPI()

    from fastapi.exceptions import RequestValidationError
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    class TestModel(BaseModel):
        rating: int = Field(..., ge=1, le=5)

    @app.post("/test-validation")
    async def test_validation(data: TestModel):
        return {"ok": True}

    client = TestClient(app)
    response = client.post("/test-validation", json={"rating": 9})

    assert response.status_code == 422
    data = response.json()
    assert data["error"] == "Validation error"
    assert data["code"] == "validation"
    assert data["details"]["errors"][0]["loc"] == ["body", "rating"]


@pytest.mark.integration
def test_http_exception_handler():
    app = FastAPI()

    from starlette.exceptions import HTTPException as StarletteHTTPException
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    @app.get("/test-http-error")
    async def test_http_error():
        raise StarletteHTTPException(status_code=404, detail="Page not found")

    client = TestClient(app)
    response = client.get("/test-http-error")

    assert response.status_code == 404
    data = response.json()
    assert data["error"] == "Page not found"
    assert data["code"] == "not_found"


@pytest.mark.integration
def test_unhandled_exception_handler():
    """Unexpected errors never leak their message."""
    app = FastAPI()
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/test-unhandled")
    async def test_unhandled():
        raise ValueError("connection string with password")

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/test-unhandled")

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Internal server error"
    assert data["code"] == "internal_error"
    assert "password" not in response.text
