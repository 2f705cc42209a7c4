"""
Graceful failure utilities.

This module provides a reusable context manager for non-critical operations
that should not block the main execution flow:
1. Attempting an operation
2. Logging any exceptions with context
3. Continuing execution without raising

This is distinct from `db_error_handling.py` which handles critical errors
that require rollback and an error response.

Usage:
    from app.core.graceful_failure import graceful_failure

    with graceful_failure("record interaction", logger, context={"test_id": 7}):
        with db.begin_nested():
            db.add(interaction)
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional

from app.observability import error_tracker


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    Unlike `handle_db_error`, this does NOT raise, roll back the session or
    stop execution. Callers that write to the database inside the block wrap
    the write in a savepoint so a failure only discards that write.

    Args:
        operation_name: Human-readable name of the operation for logging
            (e.g., "record interaction").
        logger: The logger instance to use for logging errors.
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log. Defaults to False.
        context: Optional dictionary of additional context to include in log message
            (e.g., {"test_id": 123, "question_id": 456}).
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)

        try:
            error_tracker.capture_error(
                e,
                context=context,
                level="warning",
                tags={"error_type": "GracefulFailure"},
            )
        except Exception:
            pass  # Error reporting must not break graceful failure handling
