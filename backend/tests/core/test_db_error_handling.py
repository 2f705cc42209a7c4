"""
Tests for db_error_handling module.

Covers the write-unit guard that turns lost optimistic-concurrency races
into stale_write conflicts, and the endpoint-level handler that converts
unexpected failures into a generic 500.
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from app.core.db_error_handling import handle_db_error, stale_write_guard
from app.core.error_responses import (
    ErrorReason,
    QuizNotFoundError,
    StateConflictError,
)


class TestStaleWriteGuard:
    """Tests for the stale_write_guard context manager."""

    def test_success_case_no_exception(self):
        db = MagicMock()

        with stale_write_guard(db, "pause test"):
            pass

        db.rollback.assert_not_called()

    def test_stale_data_becomes_conflict(self):
        db = MagicMock()

        with pytest.raises(StateConflictError) as exc_info:
            with stale_write_guard(db, "pause test"):
                raise StaleDataError("UPDATE statement on table 'tests' matched 0 rows")

        db.rollback.assert_called_once()
        assert exc_info.value.reason == ErrorReason.STALE_WRITE
        assert exc_info.value.status_code == status.HTTP_409_CONFLICT

    def test_integrity_error_becomes_conflict(self):
        db = MagicMock()

        with pytest.raises(StateConflictError) as exc_info:
            with stale_write_guard(db, "submit answer"):
                raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        db.rollback.assert_called_once()
        assert exc_info.value.reason == ErrorReason.STALE_WRITE

    def test_other_errors_pass_through(self):
        db = MagicMock()

        with pytest.raises(ValueError):
            with stale_write_guard(db, "pause test"):
                raise ValueError("not a race")

        db.rollback.assert_not_called()


class TestHandleDbErrorContextManager:
    """Tests for the handle_db_error context manager."""

    def test_success_case_no_exception(self):
        """Test that code executes normally when no exception occurs."""
        db = MagicMock()
        result = []

        with handle_db_error(db, "test operation"):
            result.append("executed")

        assert result == ["executed"]
        db.rollback.assert_not_called()

    def test_rollback_on_exception(self):
        """Test that rollback is called when an exception occurs."""
        db = MagicMock()

        with pytest.raises(HTTPException) as exc_info:
            with handle_db_error(db, "test operation"):
                raise ValueError("test error")

        db.rollback.assert_called_once()
        assert exc_info.value.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "Failed to test operation" in exc_info.value.detail

    def test_rollback_on_sqlalchemy_error(self):
        db = MagicMock()

        with pytest.raises(HTTPException) as exc_info:
            with handle_db_error(db, "complete test"):
                raise SQLAlchemyError("connection lost")

        db.rollback.assert_called_once()
        assert "connection lost" not in exc_info.value.detail

    def test_quiz_engine_errors_pass_through(self):
        db = MagicMock()

        with pytest.raises(QuizNotFoundError) as exc_info:
            with handle_db_error(db, "pause test"):
                raise QuizNotFoundError("Test not found.", reason=ErrorReason.TEST_NOT_FOUND)

        db.rollback.assert_called_once()
        assert exc_info.value.reason == ErrorReason.TEST_NOT_FOUND

    def test_http_exception_reraised(self):
        db = MagicMock()

        with pytest.raises(HTTPException) as exc_info:
            with handle_db_error(db, "test operation"):
                raise HTTPException(status_code=401, detail="Invalid token")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid token"

    def test_unexpected_error_reported(self):
        db = MagicMock()

        with patch("app.core.db_error_handling.error_tracker") as tracker:
            with pytest.raises(HTTPException):
                with handle_db_error(db, "resume test"):
                    raise RuntimeError("disk full")

        tracker.capture_error.assert_called_once()
        assert tracker.capture_error.call_args[1]["context"] == {
            "operation": "resume test"
        }
