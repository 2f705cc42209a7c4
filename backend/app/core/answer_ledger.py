"""
Answer ledger: one authoritative answer per (test, question).

Submitting an answer is an upsert. A changed mind overwrites the existing
row in place; resending the same choice returns the stored result
unchanged, so clients can retry freely. Correct answers carry a
QuestionScore computed by app.core.scoring; the score row follows the answer
(created, updated, or deleted when the answer stops being correct).

The Test row caches answered/skipped counts. Every ledger write recounts from
the ledger and writes the cache through, and completion recounts again, so
the cache never has to be trusted on its own.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.caller_context import CallerContext
from app.core.datetime_utils import utc_day_bounds, utc_now
from app.core.db_error_handling import stale_write_guard
from app.core.error_responses import (
    ErrorMessages,
    ErrorReason,
    QuizNotFoundError,
    QuizValidationError,
    StateConflictError,
)
from app.core.interactions import AnswerPayload, record_interaction
from app.core.scoring import PointsBreakdown, compute_points
from app.core.test_access import get_owned_test
from app.models import (
    Answer,
    AnswerOption,
    AnswerStatus,
    Question,
    QuestionScore,
    Test,
    TestQuestion,
    TestStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of one answer submission."""

    answer_id: int
    question_id: int
    status: AnswerStatus
    is_correct: Optional[bool]
    time_spent: int
    points: int
    breakdown: Optional[PointsBreakdown] = None


@dataclass(frozen=True)
class LedgerCounts:
    """Aggregate of a test's answer ledger."""

    correct: int
    incorrect: int
    skipped: int
    total_points: int

    @property
    def answered(self) -> int:
        """Answers with a selected option (skips excluded)."""
        return self.correct + self.incorrect

    def unanswered(self, total_questions: int) -> int:
        return max(0, total_questions - self.answered - self.skipped)


def count_correct_answers_today(
    db: Session,
    user_id: int,
    now: datetime,
    exclude_answer_id: Optional[int] = None,
) -> int:
    """
    Count the user's correct answers in the UTC day containing `now`.

    `exclude_answer_id` leaves out the answer being (re)scored so a
    resubmission sees the same streak as the original submission.
    """
    day_start, day_end = utc_day_bounds(now)
    query = db.query(func.count(Answer.id)).filter(
        Answer.user_id == user_id,
        Answer.status == AnswerStatus.CORRECT,
        Answer.answered_at >= day_start,
        Answer.answered_at < day_end,
    )
    if exclude_answer_id is not None:
        query = query.filter(Answer.id != exclude_answer_id)
    return query.scalar() or 0


def tally_answers(db: Session, test_id: int) -> LedgerCounts:
    """Recount a test's answers and points from the ledger."""
    rows = (
        db.query(Answer.status, func.count(Answer.id))
        .filter(Answer.test_id == test_id)
        .group_by(Answer.status)
        .all()
    )
    by_status = {status: count for status, count in rows}

    total_points = (
        db.query(func.coalesce(func.sum(QuestionScore.total_points), 0))
        .join(Answer, QuestionScore.answer_id == Answer.id)
        .filter(Answer.test_id == test_id)
        .scalar()
    )

    return LedgerCounts(
        correct=by_status.get(AnswerStatus.CORRECT, 0),
        incorrect=by_status.get(AnswerStatus.INCORRECT, 0),
        skipped=by_status.get(AnswerStatus.SKIPPED, 0),
        total_points=int(total_points or 0),
    )


def sync_cached_counters(test: Test, counts: LedgerCounts) -> None:
    """Write a ledger recount through to the Test's cached counters."""
    test.answered_count = counts.answered
    test.skipped_count = counts.skipped
    test.unanswered_count = counts.unanswered(test.total_questions)


def _ensure_accepts_answers(test: Test) -> None:
    if test.status == TestStatus.COMPLETED:
        raise StateConflictError(
            ErrorMessages.TEST_ALREADY_COMPLETED, reason=ErrorReason.TEST_COMPLETED
        )
    if test.status == TestStatus.PAUSED:
        raise StateConflictError(
            ErrorMessages.TEST_IS_PAUSED, reason=ErrorReason.TEST_PAUSED
        )


def _get_test_question(db: Session, test_id: int, question_id: int) -> Question:
    link = (
        db.query(TestQuestion)
        .filter(
            TestQuestion.test_id == test_id,
            TestQuestion.question_id == question_id,
        )
        .first()
    )
    if link is None:
        raise QuizValidationError(
            ErrorMessages.question_not_in_test(question_id),
            reason=ErrorReason.QUESTION_NOT_IN_TEST,
        )
    return link.question


def _get_option(db: Session, question_id: int, option_id: int) -> AnswerOption:
    option = db.query(AnswerOption).filter(AnswerOption.id == option_id).first()
    if option is None or option.question_id != question_id:
        raise QuizNotFoundError(
            ErrorMessages.OPTION_NOT_FOUND, reason=ErrorReason.OPTION_NOT_FOUND
        )
    return option


def _upsert_score(
    db: Session, answer: Answer, breakdown: PointsBreakdown
) -> QuestionScore:
    score = answer.question_score
    if score is None:
        score = QuestionScore(answer_id=answer.id)
        answer.question_score = score
        db.add(score)
    score.base_points = breakdown.base_points
    score.difficulty = breakdown.difficulty
    score.time_bonus = breakdown.time_bonus
    score.streak_multiplier = breakdown.streak_multiplier
    score.total_points = breakdown.total_points
    return score


def _breakdown_from_score(score: QuestionScore) -> PointsBreakdown:
    return PointsBreakdown(
        difficulty=score.difficulty,
        base_points=score.base_points,
        time_bonus=score.time_bonus,
        streak_multiplier=score.streak_multiplier,
        total_points=score.total_points,
    )


def _bump_question_counters(db: Session, question_id: int, is_correct: bool) -> None:
    values = {Question.total_attempts: Question.total_attempts + 1}
    if is_correct:
        values[Question.correct_attempts] = Question.correct_attempts + 1
    db.query(Question).filter(Question.id == question_id).update(
        values, synchronize_session=False
    )


def submit_answer(
    db: Session,
    caller: CallerContext,
    test_id: int,
    question_id: int,
    selected_option_id: Optional[int],
    time_spent: int = 0,
) -> AnswerOutcome:
    """
    Record (or overwrite) the caller's answer to one question of a live test.

    Choosing a different option (or skipping) rescores the question. Sending
    the same choice again is a retry: the stored answer, score and question
    statistics are left as they are and the stored result is returned.

    Args:
        db: Database session; the unit is committed on success
        caller: Authenticated caller, must own the test
        test_id: Test being answered
        question_id: Question within the test
        selected_option_id: Chosen option, None to skip the question
        time_spent: Seconds spent on the question

    Returns:
        AnswerOutcome with status, correctness and points earned

    Raises:
        QuizNotFoundError: test or option missing
        QuizAccessDeniedError: caller does not own the test
        QuizValidationError: question is not part of the test
        StateConflictError: test paused/completed, or a concurrent write won
    """
    with stale_write_guard(db, "submit answer"):
        test = get_owned_test(db, caller, test_id)
        _ensure_accepts_answers(test)
        question = _get_test_question(db, test.id, question_id)
        now = utc_now()
        time_spent = max(0, int(time_spent or 0))
        option = (
            _get_option(db, question_id, selected_option_id)
            if selected_option_id is not None
            else None
        )

        answer = (
            db.query(Answer)
            .filter(Answer.test_id == test.id, Answer.question_id == question_id)
            .first()
        )
        repeated = answer is not None and answer.selected_option_id == (
            option.id if option is not None else None
        )
        if answer is None:
            answer = Answer(
                test_id=test.id, question_id=question_id, user_id=caller.user_id
            )
            db.add(answer)
            db.flush()

        breakdown: Optional[PointsBreakdown] = None
        if repeated:
            # Same choice again: the stored answer and score stand
            if answer.question_score is not None:
                breakdown = _breakdown_from_score(answer.question_score)
        else:
            if option is None:
                answer.selected_option_id = None
                answer.status = AnswerStatus.SKIPPED
                answer.is_correct = None
            else:
                answer.selected_option_id = option.id
                answer.is_correct = bool(option.is_correct)
                answer.status = (
                    AnswerStatus.CORRECT
                    if option.is_correct
                    else AnswerStatus.INCORRECT
                )
                _bump_question_counters(db, question_id, answer.is_correct)

            if answer.is_correct:
                streak = count_correct_answers_today(
                    db, caller.user_id, now, exclude_answer_id=answer.id
                )
                breakdown = compute_points(
                    question.difficulty, time_spent, test.time_limit, streak
                )
                _upsert_score(db, answer, breakdown)
            elif answer.question_score is not None:
                db.delete(answer.question_score)
                answer.question_score = None

            answer.time_spent = time_spent
            answer.answered_at = now
        db.flush()

        sync_cached_counters(test, tally_answers(db, test.id))
        test.last_activity_at = now

        points = breakdown.total_points if breakdown else 0
        record_interaction(
            db,
            caller,
            AnswerPayload(
                status=answer.status,
                is_correct=answer.is_correct,
                points=points,
                selected_option_id=answer.selected_option_id,
            ),
            test_id=test.id,
            question_id=question_id,
            answer_id=answer.id,
            duration_ms=time_spent * 1000,
        )
        db.commit()

    logger.info(
        f"Answer recorded for test {test_id} question {question_id}: "
        f"{answer.status.value} ({points} points)",
        extra={"user_id": caller.user_id, "test_id": test_id},
    )

    return AnswerOutcome(
        answer_id=answer.id,
        question_id=question_id,
        status=answer.status,
        is_correct=answer.is_correct,
        time_spent=answer.time_spent,
        points=points,
        breakdown=breakdown,
    )
