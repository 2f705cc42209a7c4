"""
Tests for the points and completion score module.
"""
import pytest

from app.core.scoring import (
    BASE_POINTS,
    MAX_STREAK_MULTIPLIER,
    MAX_TIME_BONUS,
    base_points_for,
    calculate_accuracy,
    calculate_completion_score,
    compute_points,
    streak_multiplier_for,
    time_bonus_for,
)
from app.models.models import DifficultyLevel, ScoreIncompleteAs


class TestBasePoints:
    """Tests for base points per difficulty."""

    @pytest.mark.parametrize(
        "difficulty,expected",
        [
            (DifficultyLevel.EASY, 10),
            (DifficultyLevel.MEDIUM, 20),
            (DifficultyLevel.HARD, 30),
            ("medium", 20),
            ("HARD", 30),
        ],
    )
    def test_known_difficulties(self, difficulty, expected):
        assert base_points_for(difficulty) == expected

    def test_unknown_difficulty_falls_back_to_easy_value(self):
        assert base_points_for("EXPERT") == 10
        assert base_points_for(None) == 10


class TestTimeBonus:
    """Tests for the time bonus tiers."""

    def test_fast_answer_earns_top_bonus(self):
        # 150s of a 10 minute limit = 25%
        assert time_bonus_for(150, 10) == 1.5

    def test_tier_boundaries_are_inclusive(self):
        assert time_bonus_for(180, 10) == 1.5  # exactly 30%
        assert time_bonus_for(181, 10) == 1.25
        assert time_bonus_for(420, 10) == 1.25  # exactly 70%
        assert time_bonus_for(421, 10) == 1.0

    def test_untimed_test_has_no_bonus(self):
        assert time_bonus_for(5, None) == 1.0
        assert time_bonus_for(5, 0) == 1.0

    def test_unrecorded_time_has_no_bonus(self):
        assert time_bonus_for(0, 10) == 1.0
        assert time_bonus_for(None, 10) == 1.0

    def test_over_limit_has_no_bonus(self):
        assert time_bonus_for(900, 10) == 1.0


class TestStreakMultiplier:
    """Tests for the same-day streak multiplier."""

    @pytest.mark.parametrize(
        "streak,expected",
        [
            (0, 1.0),
            (3, 1.0),
            (4, 1.2),
            (7, 1.2),
            (8, 1.5),
            (15, 1.5),
            (16, 2.0),
            (250, 2.0),
        ],
    )
    def test_tiers(self, streak, expected):
        assert streak_multiplier_for(streak) == expected


class TestComputePoints:
    """Tests for points awarded to one correct answer."""

    def test_medium_fast_answer_without_streak(self):
        """150s on a 10 minute MEDIUM question: round(20 * 1.5 * 1.0) = 30."""
        result = compute_points(DifficultyLevel.MEDIUM, 150, 10, 0)

        assert result.total_points == 30
        assert result.base_points == 20
        assert result.time_bonus == 1.5
        assert result.streak_multiplier == 1.0
        assert result.difficulty == DifficultyLevel.MEDIUM

    def test_untimed_hard_answer_with_long_streak(self):
        result = compute_points(DifficultyLevel.HARD, 45, None, 16)

        assert result.total_points == 60  # 30 * 1.0 * 2.0

    def test_half_points_round_up(self):
        # 10 * 1.25 * 1.0 = 12.5
        assert compute_points(DifficultyLevel.EASY, 300, 10, 0).total_points == 13

    def test_fractional_points_round_to_nearest(self):
        # 10 * 1.25 * 1.5 = 18.75
        assert compute_points(DifficultyLevel.EASY, 300, 10, 8).total_points == 19

    def test_unknown_difficulty_is_scored_as_easy(self):
        result = compute_points("UNKNOWN", 0, None, 0)

        assert result.difficulty == DifficultyLevel.EASY
        assert result.total_points == 10

    @pytest.mark.parametrize("difficulty", list(DifficultyLevel))
    def test_points_never_exceed_three_times_base(self, difficulty):
        base = BASE_POINTS[difficulty]
        for time_spent in (1, 60, 180, 300, 420, 900):
            for streak in (0, 4, 8, 16, 40):
                points = compute_points(difficulty, time_spent, 10, streak).total_points
                assert base <= points <= base * 3

        assert MAX_TIME_BONUS * MAX_STREAK_MULTIPLIER == 3.0

    @pytest.mark.parametrize("difficulty", list(DifficultyLevel))
    def test_points_grow_with_streak(self, difficulty):
        previous = 0
        for streak in range(0, 20):
            points = compute_points(difficulty, 150, 10, streak).total_points
            assert points >= previous
            previous = points

    @pytest.mark.parametrize("difficulty", list(DifficultyLevel))
    def test_points_shrink_with_time_spent(self, difficulty):
        previous = None
        for time_spent in range(30, 700, 30):
            points = compute_points(difficulty, time_spent, 10, 0).total_points
            if previous is not None:
                assert points <= previous
            previous = points


class TestCalculateAccuracy:
    def test_basic_percentage(self):
        assert calculate_accuracy(4, 5) == 80.0

    def test_rounds_to_two_decimals(self):
        assert calculate_accuracy(2, 3) == 66.67

    def test_empty_denominator(self):
        assert calculate_accuracy(0, 0) == 0.0


class TestCompletionScore:
    """Tests for the final score at completion."""

    def test_penalty_applied_to_incomplete_test(self):
        """80% accuracy with a 0.8 penalty and unanswered questions scores 64."""
        result = calculate_completion_score(
            correct=4,
            answered=5,
            total_questions=6,
            unanswered=1,
            score_incomplete_as=ScoreIncompleteAs.EXCLUDED,
            apply_incomplete_penalty=True,
            incomplete_penalty=0.8,
        )

        assert result.accuracy == 80.0
        assert result.final_score == 64.0
        assert result.penalty_applied is True
        assert result.penalty_percentage == 20.0

    def test_penalty_not_applied_when_everything_answered(self):
        result = calculate_completion_score(
            correct=4,
            answered=5,
            total_questions=5,
            unanswered=0,
            score_incomplete_as=ScoreIncompleteAs.EXCLUDED,
            apply_incomplete_penalty=True,
            incomplete_penalty=0.8,
        )

        assert result.final_score == 80.0
        assert result.penalty_applied is False
        assert result.penalty_percentage == 0.0

    def test_penalty_not_applied_when_policy_off(self):
        result = calculate_completion_score(
            correct=4,
            answered=5,
            total_questions=10,
            unanswered=5,
            score_incomplete_as=ScoreIncompleteAs.EXCLUDED,
            apply_incomplete_penalty=False,
            incomplete_penalty=0.8,
        )

        assert result.final_score == 80.0
        assert result.penalty_applied is False

    def test_unanswered_counted_as_incorrect(self):
        result = calculate_completion_score(
            correct=4,
            answered=5,
            total_questions=8,
            unanswered=3,
            score_incomplete_as=ScoreIncompleteAs.INCORRECT,
            apply_incomplete_penalty=False,
            incomplete_penalty=0.8,
        )

        assert result.accuracy == 50.0
        assert result.final_score == 50.0

    def test_nothing_answered_scores_zero(self):
        result = calculate_completion_score(
            correct=0,
            answered=0,
            total_questions=3,
            unanswered=3,
            score_incomplete_as=ScoreIncompleteAs.EXCLUDED,
            apply_incomplete_penalty=True,
            incomplete_penalty=0.5,
        )

        assert result.accuracy == 0.0
        assert result.final_score == 0.0
        assert result.penalty_applied is True
