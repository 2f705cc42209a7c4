"""
Session tracker: the append-only sequence of TestSession records for a test.

A test starts with session 1. Every pause closes the current session and
opens the next one, which carries the resume deadline and the resume-attempt
budget for that pause. Status events (PAUSED, RESUMED, COMPLETED) are
appended to the session they belong to. session_number is strictly
increasing per test and never reused; the "last known session" is the one
with the highest number.

The tracker answers two questions for the state machine:

* can this paused test be resumed right now? (`evaluate_resume`)
* is the live session still within its inactivity window? (`is_session_expired`)
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.caller_context import CallerContext
from app.core.config import settings
from app.core.datetime_utils import ensure_timezone_aware, minutes_between
from app.core.error_responses import ErrorReason, RecommendedAction
from app.models import (
    StatusEvent,
    StatusEventType,
    Test,
    TestSession,
    TestStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResumeCheck:
    """Outcome of the three resume guards, in evaluation order.

    Guards: (a) the test is PAUSED, (b) the resume deadline has not passed,
    (c) the session still has resume attempts left. The first failing guard
    sets `reason`.
    """

    can_resume: bool
    reason: Optional[ErrorReason]
    recommended_action: RecommendedAction
    status: TestStatus
    session_number: Optional[int] = None
    resume_deadline: Optional[datetime] = None
    resume_attempts: int = 0
    max_resume_attempts: int = 0
    minutes_until_deadline: Optional[float] = None


SESSION_TOKEN_BYTES = 32


def new_session_token() -> str:
    """Opaque token identifying the live session of a test."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def tokens_match(expected: Optional[str], provided: Optional[str]) -> bool:
    """Constant-time token comparison; a cleared token never matches."""
    if not expected or not provided:
        return False
    return secrets.compare_digest(expected, provided)


def latest_session(db: Session, test_id: int) -> Optional[TestSession]:
    """The test's session with the highest session_number, if any."""
    return (
        db.query(TestSession)
        .filter(TestSession.test_id == test_id)
        .order_by(TestSession.session_number.desc())
        .first()
    )


def next_session_number(db: Session, test_id: int) -> int:
    current = (
        db.query(func.max(TestSession.session_number))
        .filter(TestSession.test_id == test_id)
        .scalar()
    )
    return (current or 0) + 1


def open_session(
    db: Session,
    test: Test,
    caller: CallerContext,
    now: datetime,
    *,
    paused: bool = False,
) -> TestSession:
    """
    Append the next session for a test.

    A session opened by a pause carries `paused_at`, a resume deadline
    RESUME_WINDOW_MINUTES ahead and a fresh resume-attempt budget.
    """
    session = TestSession(
        test_id=test.id,
        user_id=test.user_id,
        session_number=next_session_number(db, test.id),
        started_at=now,
        can_resume=True,
        resume_attempts=0,
        max_resume_attempts=settings.MAX_RESUME_ATTEMPTS,
        device_type=caller.device_type,
        browser=caller.browser,
    )
    if paused:
        session.paused_at = now
        session.resume_deadline = now + timedelta(
            minutes=settings.RESUME_WINDOW_MINUTES
        )
    db.add(session)
    db.flush()
    return session


def close_session(session: Optional[TestSession], now: datetime) -> None:
    """Stamp the end of a session that is being superseded or finished."""
    if session is not None and session.ended_at is None:
        session.ended_at = now


def append_status_event(
    db: Session,
    session: TestSession,
    event_type: StatusEventType,
    reason: str,
    now: datetime,
    *,
    question_index: Optional[int] = None,
    answered: Optional[int] = None,
    skipped: Optional[int] = None,
    unanswered: Optional[int] = None,
    attempt_number: Optional[int] = None,
) -> StatusEvent:
    event = StatusEvent(
        session_id=session.id,
        event_type=event_type,
        reason=reason,
        question_index=question_index,
        questions_answered=answered,
        questions_skipped=skipped,
        questions_unanswered=unanswered,
        attempt_number=attempt_number,
        created_at=now,
    )
    db.add(event)
    return event


def evaluate_resume(
    test: Test, session: Optional[TestSession], now: datetime
) -> ResumeCheck:
    """
    Run the resume guards in order without mutating anything.

    A paused test with no recorded pause session or deadline is treated as
    past its deadline.
    """
    if test.status != TestStatus.PAUSED:
        if test.status == TestStatus.COMPLETED:
            return ResumeCheck(
                can_resume=False,
                reason=ErrorReason.TEST_COMPLETED,
                recommended_action=RecommendedAction.REVIEW,
                status=test.status,
            )
        return ResumeCheck(
            can_resume=False,
            reason=ErrorReason.NOT_PAUSED,
            recommended_action=RecommendedAction.NONE,
            status=test.status,
        )

    deadline = (
        ensure_timezone_aware(session.resume_deadline)
        if session is not None and session.resume_deadline is not None
        else None
    )
    common = dict(
        status=test.status,
        session_number=session.session_number if session else None,
        resume_deadline=deadline,
        resume_attempts=session.resume_attempts if session else 0,
        max_resume_attempts=session.max_resume_attempts if session else 0,
        minutes_until_deadline=(
            round(minutes_between(deadline, now), 2) if deadline else None
        ),
    )

    if session is None or deadline is None or not session.can_resume or now > deadline:
        return ResumeCheck(
            can_resume=False,
            reason=ErrorReason.RESUME_DEADLINE_EXPIRED,
            recommended_action=RecommendedAction.RESTART,
            **common,
        )

    if session.resume_attempts >= session.max_resume_attempts:
        return ResumeCheck(
            can_resume=False,
            reason=ErrorReason.MAX_ATTEMPTS_EXCEEDED,
            recommended_action=RecommendedAction.RESTART,
            **common,
        )

    return ResumeCheck(
        can_resume=True,
        reason=None,
        recommended_action=RecommendedAction.RESUME,
        **common,
    )


def inactivity_minutes(test: Test, now: datetime) -> float:
    """Minutes since the test's last recorded activity."""
    return minutes_between(now, test.last_activity_at or test.started_at)


def is_session_expired(test: Test, now: datetime) -> bool:
    """True once the live session has been idle longer than the inactivity timeout."""
    return inactivity_minutes(test, now) > settings.INACTIVITY_TIMEOUT_MINUTES
