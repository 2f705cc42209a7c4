"""
Database error handling utilities.

Two context managers centralize how write units fail:

* `stale_write_guard` wraps a quiz engine write unit. A concurrent
  modification of the same test (StaleDataError from the optimistic `version`
  column, or an IntegrityError from a racing duplicate insert) rolls the unit
  back and surfaces as a 409 `stale_write` conflict the client can retry.
* `handle_db_error` wraps an endpoint. Expected errors pass through after a
  rollback; anything else is rolled back, logged, reported and converted to a
  generic 500 so no partial state survives.

Usage:
    with handle_db_error(db, "pause test"):
        result = pause_test(db, caller, test_id, ...)
        return result
"""

import logging
from contextlib import contextmanager
from typing import Generator

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.error_responses import (
    ErrorMessages,
    ErrorReason,
    QuizEngineError,
    StateConflictError,
    raise_server_error,
)
from app.observability import error_tracker

logger = logging.getLogger(__name__)


@contextmanager
def stale_write_guard(db: Session, operation_name: str) -> Generator[None, None, None]:
    """Convert lost optimistic-concurrency races into a `stale_write` conflict.

    Args:
        db: The SQLAlchemy session the unit writes through.
        operation_name: Human-readable name of the unit for logging.

    Raises:
        StateConflictError: If the unit lost a race with a concurrent write.
    """
    try:
        yield
    except (StaleDataError, IntegrityError) as e:
        db.rollback()
        logger.info(
            f"Concurrent modification during {operation_name}: "
            f"{e.__class__.__name__}"
        )
        raise StateConflictError(
            ErrorMessages.STALE_WRITE, reason=ErrorReason.STALE_WRITE
        ) from e


@contextmanager
def handle_db_error(
    db: Session,
    operation_name: str,
    *,
    log_level: int = logging.ERROR,
) -> Generator[None, None, None]:
    """Context manager for handling database errors consistently.

    1. Execute the wrapped code
    2. On an expected error (QuizEngineError, HTTPException): rollback, re-raise
    3. On anything else: rollback, log, report, raise a generic 500

    Args:
        db: The SQLAlchemy database session to rollback on error.
        operation_name: Human-readable name of the operation for error messages
            and logging (e.g., "submit answer", "complete test").
        log_level: Logging level for unexpected errors. Defaults to logging.ERROR.

    Raises:
        HTTPException: 500 on unexpected errors, with the session rolled back.
    """
    try:
        yield
    except (QuizEngineError, HTTPException):
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        logger.log(
            log_level,
            f"Database error during {operation_name}: {e}",
            exc_info=True,
        )
        error_tracker.capture_error(
            e,
            context={"operation": operation_name},
            tags={"error_type": e.__class__.__name__},
        )
        raise_server_error(ErrorMessages.database_operation_failed(operation_name))
