"""
Points and final-score calculation for quiz tests.

Per-answer points
=================
Every correct answer earns::

    points = round(base(difficulty) * time_bonus * streak_multiplier)

- base: EASY 10, MEDIUM 20, HARD 30 (10 for anything unrecognized)
- time_bonus: fraction of the test's time limit spent on the question;
  <= 30% earns 1.5x, <= 70% earns 1.25x, otherwise 1.0x. Untimed tests and
  answers with no recorded time earn 1.0x.
- streak_multiplier: the user's correct answers earlier the same UTC day;
  16+ earns 2.0x (cap), 8+ earns 1.5x, 4+ earns 1.2x, otherwise 1.0x.

Incorrect and skipped answers score 0 and are never passed through here.

Final score
===========
At completion the test score is an accuracy percentage. Unanswered questions
are either excluded from the denominator (EXCLUDED, the default) or counted
as wrong (INCORRECT). When the test carries an incomplete penalty and some
questions were left unanswered, the accuracy is multiplied by the penalty.

All functions in this module are pure; the caller reads the streak count.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

from app.models.models import DifficultyLevel, ScoreIncompleteAs

logger = logging.getLogger(__name__)

BASE_POINTS: dict[DifficultyLevel, int] = {
    DifficultyLevel.EASY: 10,
    DifficultyLevel.MEDIUM: 20,
    DifficultyLevel.HARD: 30,
}
DEFAULT_BASE_POINTS = 10

# (upper bound on fraction of time limit used, bonus); checked in order
TIME_BONUS_TIERS: tuple[tuple[float, float], ...] = ((0.3, 1.5), (0.7, 1.25))
DEFAULT_TIME_BONUS = 1.0

# (minimum same-day correct answers, multiplier); checked in order
STREAK_TIERS: tuple[tuple[int, float], ...] = ((16, 2.0), (8, 1.5), (4, 1.2))
DEFAULT_STREAK_MULTIPLIER = 1.0

MAX_TIME_BONUS = TIME_BONUS_TIERS[0][1]
MAX_STREAK_MULTIPLIER = STREAK_TIERS[0][1]


@dataclass(frozen=True)
class PointsBreakdown:
    """Points for one correct answer and the multipliers that produced them."""

    difficulty: DifficultyLevel
    base_points: int
    time_bonus: float
    streak_multiplier: float
    total_points: int


@dataclass(frozen=True)
class CompletionScore:
    """Final score of a completed test."""

    accuracy: float
    final_score: float
    penalty_applied: bool
    penalty_percentage: float


def _coerce_difficulty(
    difficulty: Union[DifficultyLevel, str, None],
) -> Optional[DifficultyLevel]:
    if isinstance(difficulty, DifficultyLevel):
        return difficulty
    try:
        return DifficultyLevel(str(difficulty).upper())
    except ValueError:
        return None


def _round_half_up(value: float) -> int:
    # round() would send 12.5 to 12; points round half up
    return int(math.floor(value + 0.5))


def base_points_for(difficulty: Union[DifficultyLevel, str, None]) -> int:
    """Base points for a difficulty, falling back to the EASY value."""
    level = _coerce_difficulty(difficulty)
    if level is None:
        logger.warning(f"Unknown difficulty {difficulty!r}, using default base points")
        return DEFAULT_BASE_POINTS
    return BASE_POINTS[level]


def time_bonus_for(
    time_spent_seconds: Optional[int], time_limit_minutes: Optional[int]
) -> float:
    """
    Time bonus for answering within a fraction of the test's time limit.

    Args:
        time_spent_seconds: Seconds spent on the question (None/0 = not recorded)
        time_limit_minutes: Test time limit in minutes (None/0 = untimed)

    Returns:
        1.5, 1.25 or 1.0
    """
    if not time_limit_minutes or not time_spent_seconds or time_spent_seconds < 0:
        return DEFAULT_TIME_BONUS

    fraction_used = time_spent_seconds / (time_limit_minutes * 60)
    for upper_bound, bonus in TIME_BONUS_TIERS:
        if fraction_used <= upper_bound:
            return bonus
    return DEFAULT_TIME_BONUS


def streak_multiplier_for(streak_count: int) -> float:
    """Multiplier for the number of correct answers already given today."""
    for minimum, multiplier in STREAK_TIERS:
        if streak_count >= minimum:
            return multiplier
    return DEFAULT_STREAK_MULTIPLIER


def compute_points(
    difficulty: Union[DifficultyLevel, str, None],
    time_spent_seconds: Optional[int],
    time_limit_minutes: Optional[int],
    streak_count: int,
) -> PointsBreakdown:
    """
    Compute the points for one correct answer.

    Args:
        difficulty: Question difficulty
        time_spent_seconds: Seconds spent on the question
        time_limit_minutes: Test time limit, None if untimed
        streak_count: User's correct answers earlier the same UTC day

    Returns:
        PointsBreakdown with the multipliers and rounded total

    Example:
        >>> compute_points(DifficultyLevel.MEDIUM, 150, 10, 0).total_points
        30
    """
    base = base_points_for(difficulty)
    bonus = time_bonus_for(time_spent_seconds, time_limit_minutes)
    streak = streak_multiplier_for(streak_count)
    level = _coerce_difficulty(difficulty) or DifficultyLevel.EASY

    return PointsBreakdown(
        difficulty=level,
        base_points=base,
        time_bonus=bonus,
        streak_multiplier=streak,
        total_points=_round_half_up(base * bonus * streak),
    )


def calculate_accuracy(correct: int, denominator: int) -> float:
    """Accuracy percentage rounded to two decimals; 0.0 for an empty denominator."""
    if denominator <= 0:
        return 0.0
    return round(correct / denominator * 100, 2)


def calculate_completion_score(
    *,
    correct: int,
    answered: int,
    total_questions: int,
    unanswered: int,
    score_incomplete_as: ScoreIncompleteAs,
    apply_incomplete_penalty: bool,
    incomplete_penalty: float,
) -> CompletionScore:
    """
    Final score for a test at completion.

    Args:
        correct: Correct answers in the ledger
        answered: Correct plus incorrect answers (skips excluded)
        total_questions: Questions in the test
        unanswered: Questions with no answer and no skip
        score_incomplete_as: Whether unanswered questions count as wrong
        apply_incomplete_penalty: Whether the penalty policy is active
        incomplete_penalty: Multiplier in (0, 1] applied when the policy triggers

    Returns:
        CompletionScore

    Example:
        >>> calculate_completion_score(
        ...     correct=4, answered=5, total_questions=6, unanswered=1,
        ...     score_incomplete_as=ScoreIncompleteAs.EXCLUDED,
        ...     apply_incomplete_penalty=True, incomplete_penalty=0.8,
        ... ).final_score
        64.0
    """
    if score_incomplete_as == ScoreIncompleteAs.INCORRECT:
        accuracy = calculate_accuracy(correct, total_questions)
    else:
        accuracy = calculate_accuracy(correct, answered)

    penalty_applied = apply_incomplete_penalty and unanswered > 0
    if penalty_applied:
        final_score = round(accuracy * incomplete_penalty, 2)
        penalty_percentage = round((1 - incomplete_penalty) * 100, 2)
    else:
        final_score = accuracy
        penalty_percentage = 0.0

    return CompletionScore(
        accuracy=accuracy,
        final_score=final_score,
        penalty_applied=penalty_applied,
        penalty_percentage=penalty_percentage,
    )
