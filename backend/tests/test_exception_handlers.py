"""
Tests for exception handlers in main.py.

Expected quiz engine failures are rendered with their reason code and
recommended action; unexpected failures become an opaque 500 with an
error_id.
"""
from fastapi import APIRouter
from fastapi.testclient import TestClient

from app.core.error_responses import (
    ErrorReason,
    QuizEngineError,
    RecommendedAction,
    ResourceExhaustedError,
    SessionExpiredError,
    StateConflictError,
)


class TestExceptionHandlerRegistration:
    """Tests that every handler is registered on the app."""

    def test_quiz_engine_exception_handler_exists(self):
        from app.main import app

        assert QuizEngineError in app.exception_handlers
        assert app.exception_handlers[QuizEngineError] is not None

    def test_http_exception_handler_exists(self):
        from app.main import app
        from starlette.exceptions import HTTPException as StarletteHTTPException

        assert StarletteHTTPException in app.exception_handlers

    def test_validation_exception_handler_exists(self):
        from app.main import app
        from fastapi.exceptions import RequestValidationError

        assert RequestValidationError in app.exception_handlers

    def test_generic_exception_handler_exists(self):
        from app.main import app

        assert Exception in app.exception_handlers


def _app_raising(exc: Exception):
    from conftest import create_test_application

    test_app = create_test_application()
    router = APIRouter()

    @router.get("/boom")
    def boom():
        raise exc

    test_app.include_router(router)
    return test_app


class TestQuizEngineErrorRendering:
    """Tests for the response body of expected failures."""

    def test_state_conflict_body(self):
        exc = StateConflictError(
            "Test is already completed.",
            reason=ErrorReason.TEST_COMPLETED,
            recommended_action=RecommendedAction.REVIEW,
        )
        with TestClient(_app_raising(exc)) as client:
            response = client.get("/boom")

        assert response.status_code == 409
        assert response.json() == {
            "detail": "Test is already completed.",
            "reason": "test_completed",
            "recommended_action": "REVIEW",
        }

    def test_extra_fields_merged_into_body(self):
        exc = ResourceExhaustedError(
            "Only 2 questions match the selected filters, but 5 were requested.",
            reason=ErrorReason.INSUFFICIENT_QUESTION_POOL,
            extra={"requested": 5, "available": 2},
        )
        with TestClient(_app_raising(exc)) as client:
            response = client.get("/boom")

        assert response.status_code == 422
        body = response.json()
        assert body["reason"] == "insufficient_question_pool"
        assert body["recommended_action"] is None
        assert body["requested"] == 5
        assert body["available"] == 2

    def test_session_expired_is_gone(self):
        exc = SessionExpiredError(
            "Session expired due to inactivity. The test has been paused.",
            reason=ErrorReason.SESSION_EXPIRED,
            recommended_action=RecommendedAction.RESUME,
        )
        with TestClient(_app_raising(exc)) as client:
            response = client.get("/boom")

        assert response.status_code == 410
        assert response.json()["recommended_action"] == "RESUME"


class TestUnexpectedErrorRendering:
    def test_generic_error_hides_details(self):
        with TestClient(
            _app_raising(RuntimeError("connection string leaked")),
            raise_server_exceptions=False,
        ) as client:
            response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["detail"] == "Internal server error"
        assert "error_id" in body
        assert "leaked" not in response.text
