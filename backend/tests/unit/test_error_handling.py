"""
Unit tests for service errors and the error handling middleware.
"""

import logging

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from polyglot.middleware.error_handling import (
    ConflictError,
    InvalidOrderSetError,
    NotFoundError,
    OutOfBoundsError,
    ReferentialIntegrityError,
    ServiceError,
    ValidationError,
    setup_error_handling,
)


# =============================================================================
# Exception Tests
# =============================================================================


class TestServiceErrors:
    """Tests for status codes, error codes and structured details."""

    @pytest.mark.parametrize(
        "error,status_code,error_code",
        [
            (NotFoundError("image", "img-1"), 404, "not_found"),
            (ValidationError("pairs", "minimum 2 required"), 422, "validation_error"),
            (
                ReferentialIntegrityError("image", "img-1", "no associated text"),
                422,
                "referential_integrity_error",
            ),
            (OutOfBoundsError("blank_index"), 422, "out_of_bounds"),
            (InvalidOrderSetError("lesson-1"), 422, "invalid_order_set"),
            (ConflictError("version taken"), 409, "conflict"),
        ],
        ids=lambda value: type(value).__name__ if isinstance(value, Exception) else None,
    )
    def test_status_and_error_code(self, error, status_code, error_code):
        assert isinstance(error, ServiceError)
        assert error.status_code == status_code
        assert error.error_code == error_code

    def test_validation_error_details(self):
        error = ValidationError("pairs", "minimum 2 required")

        assert error.message == "pairs: minimum 2 required"
        assert error.details == {"field": "pairs", "reason": "minimum 2 required"}

    def test_referential_error_details(self):
        error = ReferentialIntegrityError("image", "img-1", "no associated text")

        assert error.details["entity_id"] == "img-1"
        assert error.details["reason"] == "no associated text"

    def test_invalid_order_set_details(self):
        error = InvalidOrderSetError("lesson-1", missing=["a"], extra=["z"])

        assert error.details == {
            "lesson_id": "lesson-1",
            "missing": ["a"],
            "extra": ["z"],
            "duplicates": [],
        }

    def test_to_response_carries_details(self):
        response = InvalidOrderSetError("lesson-1", duplicates=["a"]).to_response("abcd1234")

        assert response.error == "invalid_order_set"
        assert response.error_id == "abcd1234"
        assert response.details["duplicates"] == ["a"]

    def test_not_found_custom_message(self):
        error = NotFoundError("translation", "img-1/en", "No text for img-1 in en")

        assert str(error) == "No text for img-1 in en"
        assert error.details["entity_kind"] == "translation"


# =============================================================================
# Middleware Tests
# =============================================================================


def build_app(debug: bool) -> FastAPI:
    app = FastAPI()
    setup_error_handling(app, debug=debug)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("lesson", "lesson-1")

    @app.get("/invalid")
    async def invalid():
        raise OutOfBoundsError("blank_index")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    @app.get("/unavailable")
    async def unavailable():
        raise ServiceError("Storage unavailable", status_code=503)

    @app.get("/http")
    async def http():
        raise HTTPException(status_code=418, detail="teapot")

    return app


class TestErrorHandlingMiddleware:
    """Tests for rendering errors as JSON responses."""

    def test_service_error_rendered_with_details(self):
        client = TestClient(build_app(debug=False))

        response = client.get("/missing")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["message"] == "Lesson lesson-1 not found"
        assert body["details"] == {"entity_kind": "lesson", "entity_id": "lesson-1"}
        assert len(body["error_id"]) == 8
        assert "timestamp" in body

    def test_out_of_bounds_rendered_as_422(self):
        client = TestClient(build_app(debug=False))

        response = client.get("/invalid")

        assert response.status_code == 422
        assert response.json()["details"] == {"field": "blank_index"}

    def test_unexpected_error_is_sanitized(self):
        client = TestClient(build_app(debug=False))

        response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert "hunter2" not in response.text
        assert "details" not in body

    def test_unexpected_error_details_in_debug(self):
        client = TestClient(build_app(debug=True))

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["details"]["exception"] == "RuntimeError"

    def test_http_exception_passes_through(self):
        client = TestClient(build_app(debug=False))

        response = client.get("/http")

        assert response.status_code == 418
        assert response.json() == {"detail": "teapot"}

    def test_client_error_logged_as_warning(self, caplog):
        client = TestClient(build_app(debug=False))

        with caplog.at_level(logging.WARNING, logger="polyglot.middleware.error_handling"):
            client.get("/invalid")

        records = [r for r in caplog.records if "out_of_bounds" in r.getMessage()]
        assert [r.levelno for r in records] == [logging.WARNING]
        assert records[0].details == {"field": "blank_index"}

    def test_server_service_error_logged_as_error(self, caplog):
        client = TestClient(build_app(debug=False))

        with caplog.at_level(logging.WARNING, logger="polyglot.middleware.error_handling"):
            response = client.get("/unavailable")

        assert response.status_code == 503
        assert response.json()["error"] == "service_error"
        records = [r for r in caplog.records if "service_error" in r.getMessage()]
        assert [r.levelno for r in records] == [logging.ERROR]
