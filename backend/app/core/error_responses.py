"""
Standardized error messages, reason codes and typed quiz engine errors.

Two families of errors live here:

1. HTTPException builders (`raise_unauthorized`, `raise_server_error`) for
   plain request failures such as authentication.
2. `QuizEngineError` and its subclasses, raised by the quiz engine for every
   expected failure. Each carries a machine-readable `reason` and, for
   resume/status flows, a `recommended_action` so clients can branch
   (RESUME vs RESTART) without re-deriving policy. A single exception
   handler in app.main renders them as::

       {"detail": "...", "reason": "resume_deadline_expired",
        "recommended_action": "RESTART"}

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Include relevant IDs in parentheses when helpful for debugging: "(ID: 123)"

Usage:
    from app.core.error_responses import ErrorMessages, ErrorReason, StateConflictError

    raise StateConflictError(
        ErrorMessages.TEST_ALREADY_COMPLETED,
        reason=ErrorReason.TEST_COMPLETED,
        recommended_action=RecommendedAction.REVIEW,
    )
"""

import enum
from typing import Any, Dict, NoReturn, Optional

from fastapi import HTTPException, status


class RecommendedAction(str, enum.Enum):
    """Next step the client should offer the user."""

    RESUME = "RESUME"
    REVIEW = "REVIEW"
    RESTART = "RESTART"
    NONE = "NONE"


class ErrorReason(str, enum.Enum):
    """Machine-readable reason codes returned with every expected failure."""

    # Validation
    INVALID_QUESTION_COUNT = "invalid_question_count"
    MISSING_SELECTION = "missing_selection"
    INVALID_TIME_LIMIT = "invalid_time_limit"
    QUESTION_NOT_IN_TEST = "question_not_in_test"

    # Not found
    TEST_NOT_FOUND = "test_not_found"
    USER_NOT_FOUND = "user_not_found"
    QUESTION_NOT_FOUND = "question_not_found"
    OPTION_NOT_FOUND = "option_not_found"
    SESSION_NOT_FOUND = "session_not_found"

    # Authorization
    NOT_TEST_OWNER = "not_test_owner"

    # State conflicts
    TEST_COMPLETED = "test_completed"
    TEST_NOT_COMPLETED = "test_not_completed"
    TEST_PAUSED = "test_paused"
    NOT_PAUSED = "not_paused"
    ALREADY_PAUSED = "already_paused"
    INVALID_SESSION = "invalid_session"
    INVALID_TOKEN = "invalid_token"
    RESUME_WINDOW_OPEN = "resume_window_open"
    STALE_WRITE = "stale_write"

    # Expiry and exhaustion
    SESSION_EXPIRED = "session_expired"
    INACTIVITY_TIMEOUT = "inactivity_timeout"
    INSUFFICIENT_QUESTION_POOL = "insufficient_question_pool"
    RESUME_DEADLINE_EXPIRED = "resume_deadline_expired"
    MAX_ATTEMPTS_EXCEEDED = "max_attempts_exceeded"


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_TYPE = "Invalid token type."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."
    USER_NOT_FOUND_AUTH = "User not found."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    TEST_ACCESS_DENIED = "Not authorized to access this test."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_NOT_FOUND = "Test not found."
    USER_NOT_FOUND = "User not found."
    OPTION_NOT_FOUND = "Answer option not found for this question."
    SESSION_NOT_FOUND = "No session has been recorded for this test."

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    TEST_ALREADY_COMPLETED = "Test is already completed."
    TEST_NOT_COMPLETED = "Results are available once the test is completed."
    TEST_IS_PAUSED = "Test is paused. Resume it before submitting answers."
    TEST_NOT_PAUSED = "Test is not paused."
    TEST_ALREADY_PAUSED = "Test is already paused."
    INVALID_SESSION_TOKEN = "Session token does not match the live session."
    RESUME_WINDOW_STILL_OPEN = (
        "Test can still be resumed. Pass forced=true to complete it anyway."
    )
    STALE_WRITE = (
        "Test was modified by another request. Please reload and try again."
    )

    # ==========================================================================
    # Expiry / exhaustion (410, 422)
    # ==========================================================================
    SESSION_EXPIRED = "Session expired due to inactivity. The test has been paused."
    RESUME_DEADLINE_EXPIRED = "The resume window for this test has expired."
    MAX_RESUME_ATTEMPTS_EXCEEDED = "Maximum number of resume attempts reached."

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    MISSING_SELECTION = "Select at least one subject, topic or system."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def invalid_question_count(minimum: int, maximum: int) -> str:
        """Message for a question count outside the allowed range."""
        return f"Question count must be between {minimum} and {maximum}."

    @staticmethod
    def insufficient_questions(requested: int, available: int) -> str:
        """Message when the filtered pool is smaller than the requested count."""
        return (
            f"Only {available} questions match the selected filters, "
            f"but {requested} were requested."
        )

    @staticmethod
    def question_not_in_test(question_id: int) -> str:
        """Message when an answer targets a question outside the test."""
        return f"Question {question_id} does not belong to this test."

    @staticmethod
    def database_operation_failed(operation: str) -> str:
        """Generic message for database operation failures."""
        return f"Failed to {operation}. Please try again later."


# ==============================================================================
# Quiz engine errors
# ==============================================================================


class QuizEngineError(Exception):
    """Base class for expected quiz engine failures.

    Attributes:
        detail: User-facing message
        reason: Machine-readable reason code
        recommended_action: Optional next-step hint for the client
        extra: Additional fields merged into the response body
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        detail: str,
        *,
        reason: ErrorReason,
        recommended_action: Optional[RecommendedAction] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.detail = detail
        self.reason = reason
        self.recommended_action = recommended_action
        self.extra = extra or {}
        super().__init__(detail)

    def to_response(self) -> Dict[str, Any]:
        """Render the error as a JSON response body."""
        body: Dict[str, Any] = {
            "detail": self.detail,
            "reason": self.reason.value,
            "recommended_action": (
                self.recommended_action.value if self.recommended_action else None
            ),
        }
        body.update(self.extra)
        return body


class QuizValidationError(QuizEngineError):
    """Malformed or out-of-range input. Nothing was written."""

    status_code = status.HTTP_400_BAD_REQUEST


class QuizNotFoundError(QuizEngineError):
    """A referenced test, user, question or option does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class QuizAccessDeniedError(QuizEngineError):
    """The caller does not own the referenced test."""

    status_code = status.HTTP_403_FORBIDDEN


class StateConflictError(QuizEngineError):
    """The operation is invalid for the test's current lifecycle state."""

    status_code = status.HTTP_409_CONFLICT


class SessionExpiredError(QuizEngineError):
    """The live session timed out; the test was paused on the caller's behalf."""

    status_code = status.HTTP_410_GONE


class ResourceExhaustedError(QuizEngineError):
    """Question pool, resume window or resume attempts are exhausted."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_unauthorized(
    detail: str,
    include_www_authenticate: bool = True,
) -> NoReturn:
    """Raise a 401 Unauthorized exception.

    Use for authentication failures (invalid/missing credentials).

    Args:
        detail: User-facing error message
        include_www_authenticate: Whether to include WWW-Authenticate header

    Raises:
        HTTPException: 401 Unauthorized
    """
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=headers,
    )


def raise_server_error(
    detail: str,
    error_id: Optional[str] = None,
) -> NoReturn:
    """Raise a 500 Internal Server Error exception.

    Use for unexpected server errors. Always use user-friendly messages;
    log technical details separately.

    Args:
        detail: User-facing error message (should be generic and friendly)
        error_id: Optional error tracking ID to include in response

    Raises:
        HTTPException: 500 Internal Server Error
    """
    if error_id:
        detail = f"{detail} (Error ID: {error_id})"

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )
