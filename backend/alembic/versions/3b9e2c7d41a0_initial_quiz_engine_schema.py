"""initial quiz engine schema

Revision ID: 3b9e2c7d41a0
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3b9e2c7d41a0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

difficulty_level = sa.Enum("EASY", "MEDIUM", "HARD", name="difficultylevel")
# question_scores reuses the type created with the questions table
difficulty_level_ref = postgresql.ENUM(
    "EASY", "MEDIUM", "HARD", name="difficultylevel", create_type=False
)
test_difficulty = sa.Enum("EASY", "MEDIUM", "HARD", "MIXED", name="testdifficulty")
test_mode = sa.Enum("TUTOR", "TIMED", name="testmode")
test_status = sa.Enum("ACTIVE", "PAUSED", "RESUMED", "COMPLETED", name="teststatus")
completion_status = sa.Enum(
    "FULLY_COMPLETED", "PARTIALLY_COMPLETED", name="completionstatus"
)
answer_status = sa.Enum(
    "NOT_ANSWERED", "CORRECT", "INCORRECT", "SKIPPED", name="answerstatus"
)
abandon_reason = sa.Enum(
    "USER_QUIT",
    "AUTO_TIMEOUT",
    "CONNECTION_LOST",
    "APP_BACKGROUNDED",
    "OTHER",
    name="abandonreason",
)
score_incomplete_as = sa.Enum("EXCLUDED", "INCORRECT", name="scoreincompleteas")
status_event_type = sa.Enum("PAUSED", "RESUMED", "COMPLETED", name="statuseventtype")
interaction_type = sa.Enum(
    "TEST_START",
    "ANSWER_SUBMITTED",
    "TEST_PAUSED",
    "TEST_RESUMED",
    "TEST_COMPLETED",
    name="interactiontype",
)


def upgrade() -> None:
    """Create catalog, test lifecycle, leaderboard and interaction tables."""
    # Catalog
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_subjects_id", "subjects", ["id"])

    op.create_table(
        "topics",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_topics_id", "topics", ["id"])

    op.create_table(
        "systems",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_systems_id", "systems", ["id"])

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("difficulty", difficulty_level, nullable=False),
        sa.Column("subject_id", sa.Integer(), nullable=True),
        sa.Column("topic_id", sa.Integer(), nullable=True),
        sa.Column("system_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("total_attempts", sa.Integer(), nullable=False),
        sa.Column("correct_attempts", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subjects.id"]),
        sa.ForeignKeyConstraint(["topic_id"], ["topics.id"]),
        sa.ForeignKeyConstraint(["system_id"], ["systems.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_id", "questions", ["id"])
    op.create_index("ix_questions_difficulty", "questions", ["difficulty"])
    op.create_index("ix_questions_subject_id", "questions", ["subject_id"])
    op.create_index("ix_questions_topic_id", "questions", ["topic_id"])
    op.create_index("ix_questions_system_id", "questions", ["system_id"])

    op.create_table(
        "answer_options",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("option_text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_answer_options_id", "answer_options", ["id"])
    op.create_index("ix_answer_options_question_id", "answer_options", ["question_id"])

    # Test lifecycle
    op.create_table(
        "tests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("status", test_status, nullable=False),
        sa.Column("completion_status", completion_status, nullable=True),
        sa.Column("mode", test_mode, nullable=False),
        sa.Column("difficulty", test_difficulty, nullable=False),
        sa.Column("selection_filters", sa.JSON(), nullable=True),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        sa.Column("answered_count", sa.Integer(), nullable=False),
        sa.Column("skipped_count", sa.Integer(), nullable=False),
        sa.Column("unanswered_count", sa.Integer(), nullable=False),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("total_correct", sa.Integer(), nullable=False),
        sa.Column("total_incorrect", sa.Integer(), nullable=False),
        sa.Column("total_skipped", sa.Integer(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("session_token", sa.String(length=64), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paused_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("abandon_reason", abandon_reason, nullable=True),
        sa.Column("apply_incomplete_penalty", sa.Boolean(), nullable=False),
        sa.Column("incomplete_penalty", sa.Float(), nullable=False),
        sa.Column("score_incomplete_as", score_incomplete_as, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "total_questions >= 1 AND total_questions <= 100",
            name="ck_tests_total_questions_range",
        ),
        sa.CheckConstraint(
            "incomplete_penalty > 0 AND incomplete_penalty <= 1",
            name="ck_tests_incomplete_penalty_range",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tests_id", "tests", ["id"])
    op.create_index("ix_tests_user_id", "tests", ["user_id"])
    op.create_index("ix_tests_completed_at", "tests", ["completed_at"])
    op.create_index("ix_tests_user_status", "tests", ["user_id", "status"])

    op.create_table(
        "test_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("test_id", "question_id", name="uq_test_question"),
    )
    op.create_index("ix_test_questions_id", "test_questions", ["id"])
    op.create_index("ix_test_questions_test_id", "test_questions", ["test_id"])

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("selected_option_id", sa.Integer(), nullable=True),
        sa.Column("status", answer_status, nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=True),
        sa.Column("time_spent", sa.Integer(), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["selected_option_id"], ["answer_options.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("test_id", "question_id", name="uq_answer_test_question"),
    )
    op.create_index("ix_answers_id", "answers", ["id"])
    # Same-day streak lookup
    op.create_index(
        "ix_answers_user_status_answered",
        "answers",
        ["user_id", "status", "answered_at"],
    )

    op.create_table(
        "question_scores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("answer_id", sa.Integer(), nullable=False),
        sa.Column("base_points", sa.Integer(), nullable=False),
        sa.Column("difficulty", difficulty_level_ref, nullable=False),
        sa.Column("time_bonus", sa.Float(), nullable=False),
        sa.Column("streak_multiplier", sa.Float(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["answer_id"], ["answers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("answer_id"),
    )
    op.create_index("ix_question_scores_id", "question_scores", ["id"])

    op.create_table(
        "test_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paused_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("can_resume", sa.Boolean(), nullable=False),
        sa.Column("resume_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resume_attempts", sa.Integer(), nullable=False),
        sa.Column("max_resume_attempts", sa.Integer(), nullable=False),
        sa.Column("device_type", sa.String(length=20), nullable=True),
        sa.Column("browser", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("resume_attempts >= 0", name="ck_test_sessions_attempts"),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "test_id", "session_number", name="uq_test_session_number"
        ),
    )
    op.create_index("ix_test_sessions_id", "test_sessions", ["id"])

    op.create_table(
        "status_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("event_type", status_event_type, nullable=False),
        sa.Column("reason", sa.String(length=50), nullable=True),
        sa.Column("question_index", sa.Integer(), nullable=True),
        sa.Column("questions_answered", sa.Integer(), nullable=True),
        sa.Column("questions_skipped", sa.Integer(), nullable=True),
        sa.Column("questions_unanswered", sa.Integer(), nullable=True),
        sa.Column("attempt_number", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["session_id"], ["test_sessions.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_status_events_id", "status_events", ["id"])
    op.create_index("ix_status_events_session_id", "status_events", ["session_id"])

    # Downstream records
    op.create_table(
        "user_leaderboards",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("total_tests", sa.Integer(), nullable=False),
        sa.Column("average_score", sa.Float(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("total_correct_answers", sa.Integer(), nullable=False),
        sa.Column("total_questions_answered", sa.Integer(), nullable=False),
        sa.Column("overall_success_rate", sa.Float(), nullable=False),
        sa.Column("last_activity_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index("ix_user_leaderboards_id", "user_leaderboards", ["id"])

    op.create_table(
        "user_interactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("action_type", interaction_type, nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=True),
        sa.Column("question_id", sa.Integer(), nullable=True),
        sa.Column("answer_id", sa.Integer(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("client_ip", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["answer_id"], ["answers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_interactions_id", "user_interactions", ["id"])
    op.create_index("ix_user_interactions_user_id", "user_interactions", ["user_id"])
    op.create_index(
        "ix_user_interactions_user_action",
        "user_interactions",
        ["user_id", "action_type"],
    )


def downgrade() -> None:
    """Drop all quiz engine tables and enum types."""
    op.drop_table("user_interactions")
    op.drop_table("user_leaderboards")
    op.drop_table("status_events")
    op.drop_table("test_sessions")
    op.drop_table("question_scores")
    op.drop_table("answers")
    op.drop_table("test_questions")
    op.drop_table("tests")
    op.drop_table("answer_options")
    op.drop_table("questions")
    op.drop_table("systems")
    op.drop_table("topics")
    op.drop_table("subjects")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        interaction_type,
        status_event_type,
        score_incomplete_as,
        abandon_reason,
        answer_status,
        completion_status,
        test_status,
        test_mode,
        test_difficulty,
        difficulty_level,
    ):
        enum_type.drop(bind, checkfirst=True)
