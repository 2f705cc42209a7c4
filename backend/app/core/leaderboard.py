"""
Leaderboard aggregate maintained on test completion.

The update runs inside the completion transaction: a test never becomes
COMPLETED without its result being folded into the user's aggregate.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.scoring import calculate_accuracy
from app.models import UserLeaderboard

logger = logging.getLogger(__name__)


def record_completed_test(
    db: Session,
    user_id: int,
    *,
    final_score: float,
    total_points: int,
    correct: int,
    answered: int,
    completed_at: datetime,
) -> UserLeaderboard:
    """
    Fold one completed test into the user's leaderboard row.

    The average score is a running mean over completed tests:
    new_avg = (avg * n + score) / (n + 1).
    """
    entry = db.query(UserLeaderboard).filter(UserLeaderboard.user_id == user_id).first()
    if entry is None:
        entry = UserLeaderboard(
            user_id=user_id,
            total_tests=0,
            average_score=0.0,
            total_points=0,
            total_correct_answers=0,
            total_questions_answered=0,
            overall_success_rate=0.0,
        )
        db.add(entry)
        db.flush()

    previous_tests = entry.total_tests or 0
    entry.average_score = round(
        ((entry.average_score or 0.0) * previous_tests + final_score)
        / (previous_tests + 1),
        2,
    )
    entry.total_tests = previous_tests + 1
    entry.total_points = (entry.total_points or 0) + total_points
    entry.total_correct_answers = (entry.total_correct_answers or 0) + correct
    entry.total_questions_answered = (entry.total_questions_answered or 0) + answered
    entry.overall_success_rate = calculate_accuracy(
        entry.total_correct_answers, entry.total_questions_answered
    )
    entry.last_activity_date = completed_at

    logger.info(
        f"Leaderboard updated for user {user_id}: "
        f"{entry.total_tests} tests, average {entry.average_score}",
        extra={"user_id": user_id},
    )
    return entry
