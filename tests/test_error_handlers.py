"""
Tests for FastAPI error handlers.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from mapstyler.api.error_handlers import register_error_handlers
from mapstyler.api.middleware import LoggingContextMiddleware, RequestCorrelationMiddleware
from mapstyler.core.config import settings
from mapstyler.core.errors import (
    CRSError,
    MapStylerException,
    StyleParseError,
    ValidationError,
)


class SampleModel(BaseModel):
    """Model for request validation."""

    name: str = Field(..., min_length=3)
    count: int = Field(..., gt=0)


@pytest.fixture
def app() -> FastAPI:
    """Create test FastAPI app with error handlers."""
    test_app = FastAPI()

    @test_app.get("/test/validation-error")
    def raise_validation_error():
        raise ValidationError("Invalid input", field="file")

    @test_app.get("/test/style-parse-error")
    def raise_style_parse_error():
        raise StyleParseError("No renderer-v2 element")

    @test_app.get("/test/crs-error")
    def raise_crs_error():
        raise CRSError("Unknown CRS", source_crs="EPSG:9999")

    @test_app.get("/test/server-error")
    def raise_server_error():
        raise MapStylerException("Broken", error_code="BROKEN")

    @test_app.get("/test/generic-error")
    def raise_generic_error():
        raise RuntimeError("Unexpected error")

    @test_app.post("/test/pydantic-validation")
    def pydantic_validation(data: SampleModel):
        return {"status": "ok"}

    register_error_handlers(test_app)
    test_app.add_middleware(LoggingContextMiddleware)
    test_app.add_middleware(RequestCorrelationMiddleware)
    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Client that returns 500 responses instead of raising."""
    return TestClient(app, raise_server_exceptions=False)


class TestMapStylerExceptionHandler:
    """Tests for the domain exception handler."""

    def test_validation_error(self, client: TestClient) -> None:
        """ValidationError returns 400."""
        response = client.get("/test/validation-error", headers={"X-Request-ID": "req-1"})

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["message"] == "Invalid input"
        assert data["details"] == {"field": "file"}
        assert data["request_id"] == "req-1"
        assert "timestamp" in data

    def test_style_parse_error(self, client: TestClient) -> None:
        """StyleParseError returns 422 with suggestions."""
        response = client.get("/test/style-parse-error")

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "INVALID_STYLE_DOCUMENT"
        assert data["suggestions"]

    def test_crs_error(self, client: TestClient) -> None:
        """CRSError returns 422."""
        response = client.get("/test/crs-error")

        assert response.status_code == 422
        assert response.json()["details"]["source_crs"] == "EPSG:9999"

    def test_server_error(self, client: TestClient) -> None:
        """Base exceptions default to 500."""
        response = client.get("/test/server-error")

        assert response.status_code == 500
        assert response.json()["error_code"] == "BROKEN"
        assert "suggestions" not in response.json()


class TestValidationErrorHandler:
    """Tests for request validation errors."""

    def test_pydantic_validation(self, client: TestClient) -> None:
        """Field errors are listed."""
        response = client.post("/test/pydantic-validation", json={"name": "ab", "count": 0})

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert {error["field"] for error in data["errors"]} == {"body.name", "body.count"}

    def test_valid_request(self, client: TestClient) -> None:
        """Valid requests are unaffected."""
        response = client.post("/test/pydantic-validation", json={"name": "abc", "count": 1})
        assert response.json() == {"status": "ok"}


class TestGenericExceptionHandler:
    """Tests for unexpected exceptions."""

    def test_development_details(self, client: TestClient, monkeypatch) -> None:
        """Development responses include the exception."""
        monkeypatch.setattr(settings, "environment", "development")
        response = client.get("/test/generic-error")

        assert response.status_code == 500
        data = response.json()
        assert data["error_code"] == "INTERNAL_ERROR"
        assert data["details"]["exception_type"] == "RuntimeError"

    def test_production_hides_details(self, client: TestClient, monkeypatch) -> None:
        """Production responses do not leak internals."""
        monkeypatch.setattr(settings, "environment", "production")
        response = client.get("/test/generic-error")

        assert response.status_code == 500
        assert "details" not in response.json()
