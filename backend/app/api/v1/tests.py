"""
Quiz test lifecycle endpoints.

Every route resolves the caller into a CallerContext and delegates to the
quiz engine in app.core. Expected failures are QuizEngineError subclasses,
rendered with their reason code by the handler in app.main.
"""
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.answer_ledger import submit_answer as record_answer
from app.core.auth import get_caller_context
from app.core.caller_context import CallerContext
from app.core.db_error_handling import handle_db_error
from app.core.test_composition import create_test as compose_test
from app.core.test_lifecycle import (
    auto_complete_test,
    check_resume,
    complete_test,
    get_test_status,
    heartbeat,
    pause_test,
    resume_test,
)
from app.core.test_results import (
    get_recovery_history,
    get_results,
    get_test_detail,
    list_tests,
)
from app.models import AnswerStatus, get_db
from app.schemas.tests import (
    AnswerFeedback,
    AnswerRecordResponse,
    AutoCompleteRequest,
    CompleteRequest,
    CompletionResponse,
    CreatedTestResponse,
    CreateTestRequest,
    HeartbeatRequest,
    HeartbeatResponse,
    PauseRequest,
    PauseResponse,
    PointsBreakdownResponse,
    RecoveryHistoryResponse,
    ResumeCheckResponse,
    ResumeResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
    TestDetailResponse,
    TestListResponse,
    TestResultsResponse,
    TestStatusResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@router.post(
    "", response_model=CreatedTestResponse, status_code=status.HTTP_201_CREATED
)
def create_test(
    request: CreateTestRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Create a new test from the selected subjects, topics and systems.

    Returns the ordered questions without option correctness and the token
    of the live session, which heartbeats must echo.

    Raises:
        QuizValidationError: invalid_question_count, missing_selection,
            invalid_time_limit (400)
        ResourceExhaustedError: insufficient_question_pool (422)
    """
    with handle_db_error(db, "create test"):
        return compose_test(
            db,
            caller,
            subjects=request.subjects,
            topics=request.topics,
            systems=request.systems,
            difficulty=request.difficulty,
            question_count=request.question_count,
            mode=request.mode,
            time_limit=request.time_limit,
            apply_incomplete_penalty=request.apply_incomplete_penalty,
            incomplete_penalty=request.incomplete_penalty,
            score_incomplete_as=request.score_incomplete_as,
        )


@router.get("", response_model=TestListResponse)
def get_tests(
    status_filter: Literal["all", "completed", "in_progress"] = Query(
        default="all", alias="status", description="Filter by lifecycle state"
    ),
    limit: int = Query(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description=f"Maximum number of tests to return (max {MAX_PAGE_SIZE})",
    ),
    offset: int = Query(default=0, ge=0, description="Number of tests to skip"),
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """List the caller's tests, newest first."""
    return list_tests(
        db, caller, status_filter=status_filter, limit=limit, offset=offset
    )


@router.get("/{test_id}", response_model=TestDetailResponse)
def get_test(
    test_id: int,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Get a test with its progress, questions and the caller's answers.

    Answer correctness and explanations are included only once the test is
    completed.
    """
    return get_test_detail(db, caller, test_id)


@router.post("/{test_id}/answers", response_model=SubmitAnswerResponse)
def submit_answer(
    test_id: int,
    request: SubmitAnswerRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Submit, change or skip the answer to one question.

    A different choice for the same question overwrites the previous answer;
    resending the same choice returns the stored result, so clients may
    retry freely.

    Raises:
        StateConflictError: test_completed, test_paused, stale_write (409)
        QuizValidationError: question_not_in_test (400)
        QuizNotFoundError: option_not_found (404)
    """
    with handle_db_error(db, "submit answer"):
        outcome = record_answer(
            db,
            caller,
            test_id,
            request.question_id,
            request.selected_option_id,
            request.time_spent,
        )

    if outcome.status == AnswerStatus.SKIPPED:
        message = "Question skipped"
    elif outcome.is_correct:
        message = f"Correct! +{outcome.points} points"
    else:
        message = "Incorrect"

    return SubmitAnswerResponse(
        answer=AnswerRecordResponse(
            id=outcome.answer_id,
            question_id=outcome.question_id,
            status=outcome.status,
            is_correct=outcome.is_correct,
            time_spent=outcome.time_spent,
        ),
        points=outcome.points,
        breakdown=(
            PointsBreakdownResponse.model_validate(outcome.breakdown)
            if outcome.breakdown
            else None
        ),
        feedback=AnswerFeedback(correct=outcome.is_correct, message=message),
    )


@router.post("/{test_id}/heartbeat", response_model=HeartbeatResponse)
def send_heartbeat(
    test_id: int,
    request: HeartbeatRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Keep the live session alive and get the remaining time.

    Raises:
        StateConflictError: invalid_session when the token is not the live one (409)
        SessionExpiredError: session_expired after 30 idle minutes; the test
            has been paused (410)
    """
    with handle_db_error(db, "process heartbeat"):
        return heartbeat(
            db,
            caller,
            test_id,
            request.session_token,
            time_elapsed=request.time_elapsed,
            questions_answered=request.questions_answered,
            questions_skipped=request.questions_skipped,
            current_question_index=request.current_question_index,
        )


@router.post("/{test_id}/pause", response_model=PauseResponse)
def pause(
    test_id: int,
    request: PauseRequest,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Pause a test. It can be resumed within the resume window.

    Raises:
        StateConflictError: test_completed, already_paused (409)
    """
    with handle_db_error(db, "pause test"):
        return pause_test(
            db,
            caller,
            test_id,
            reason=request.reason,
            event_reason=request.event_reason,
            questions_answered=request.questions_answered,
            questions_skipped=request.questions_skipped,
            question_index=request.current_question_index,
        )


@router.get("/{test_id}/resume", response_model=ResumeCheckResponse)
def get_resume_check(
    test_id: int,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """Check whether a test can be resumed right now, without resuming it."""
    return check_resume(db, caller, test_id)


@router.post("/{test_id}/resume", response_model=ResumeResponse)
def resume(
    test_id: int,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Resume a paused test and issue a new session token.

    Raises:
        StateConflictError: test_completed, not_paused (409)
        ResourceExhaustedError: resume_deadline_expired, max_attempts_exceeded (422)
    """
    with handle_db_error(db, "resume test"):
        return resume_test(db, caller, test_id)


@router.post("/{test_id}/complete", response_model=CompletionResponse)
def complete(
    test_id: int,
    request: Optional[CompleteRequest] = None,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Submit a test for scoring.

    Raises:
        StateConflictError: test_completed (409)
    """
    request = request or CompleteRequest()
    with handle_db_error(db, "complete test"):
        return complete_test(db, caller, test_id, reason=request.reason)


@router.post("/{test_id}/auto-complete", response_model=CompletionResponse)
def auto_complete(
    test_id: int,
    request: Optional[AutoCompleteRequest] = None,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Complete a test on the client's behalf (time expired, abandoned).

    Raises:
        StateConflictError: test_completed, or resume_window_open for a
            resumable paused test without forced=true (409)
    """
    request = request or AutoCompleteRequest()
    with handle_db_error(db, "auto-complete test"):
        return auto_complete_test(
            db, caller, test_id, reason=request.reason, forced=request.forced
        )


@router.get("/{test_id}/status", response_model=TestStatusResponse)
def get_status(
    test_id: int,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """Get the recommended next action (RESUME, REVIEW, RESTART or NONE)."""
    return get_test_status(db, caller, test_id)


@router.get("/{test_id}/results", response_model=TestResultsResponse)
def get_test_results(
    test_id: int,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """
    Get the full results of a completed test.

    Raises:
        StateConflictError: test_not_completed (409)
    """
    return get_results(db, caller, test_id)


@router.get("/{test_id}/recovery-history", response_model=RecoveryHistoryResponse)
def get_test_recovery_history(
    test_id: int,
    caller: CallerContext = Depends(get_caller_context),
    db: Session = Depends(get_db),
):
    """Get every session of a test with its pause/resume/complete events."""
    return get_recovery_history(db, caller, test_id)
