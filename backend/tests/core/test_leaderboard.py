"""
Tests for the leaderboard aggregate updated on test completion.
"""
from datetime import datetime, timezone

from app.core.leaderboard import record_completed_test
from app.models import UserLeaderboard

COMPLETED_AT = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


class TestRecordCompletedTest:
    """Tests for folding completed tests into the user's row."""

    def test_first_completion_creates_row(self, db_session, test_user):
        entry = record_completed_test(
            db_session,
            test_user.id,
            final_score=80.0,
            total_points=45,
            correct=4,
            answered=5,
            completed_at=COMPLETED_AT,
        )
        db_session.commit()

        assert entry.total_tests == 1
        assert entry.average_score == 80.0
        assert entry.total_points == 45
        assert entry.total_correct_answers == 4
        assert entry.total_questions_answered == 5
        assert entry.overall_success_rate == 80.0
        assert db_session.query(UserLeaderboard).count() == 1

    def test_average_is_running_mean(self, db_session, test_user):
        for score in (80.0, 50.0, 65.0):
            record_completed_test(
                db_session,
                test_user.id,
                final_score=score,
                total_points=10,
                correct=1,
                answered=2,
                completed_at=COMPLETED_AT,
            )
        db_session.commit()

        entry = db_session.query(UserLeaderboard).one()
        assert entry.total_tests == 3
        assert entry.average_score == 65.0
        assert entry.total_points == 30
        assert entry.overall_success_rate == 50.0

    def test_nothing_answered(self, db_session, test_user):
        entry = record_completed_test(
            db_session,
            test_user.id,
            final_score=0.0,
            total_points=0,
            correct=0,
            answered=0,
            completed_at=COMPLETED_AT,
        )

        assert entry.overall_success_rate == 0.0
        assert entry.last_activity_date == COMPLETED_AT
