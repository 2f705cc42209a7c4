"""
Database models for the MedPrep quiz backend.

The catalog tables (users, subjects, topics, systems, questions, options) are
read by the quiz engine; tests, answers, scores, sessions and status events
are owned by it. Leaderboard and interaction rows are downstream records the
engine writes on lifecycle transitions.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    Enum,
    Float,
    JSON,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from .base import Base


class DifficultyLevel(str, enum.Enum):
    """Question difficulty enumeration."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class TestDifficulty(str, enum.Enum):
    """Difficulty filter chosen when building a test. MIXED applies no filter."""

    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    MIXED = "MIXED"


class TestMode(str, enum.Enum):
    """Test mode enumeration."""

    TUTOR = "TUTOR"
    TIMED = "TIMED"


class TestStatus(str, enum.Enum):
    """Lifecycle status of a test."""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    RESUMED = "RESUMED"
    COMPLETED = "COMPLETED"


class CompletionStatus(str, enum.Enum):
    """Whether every question was answered or skipped at completion."""

    FULLY_COMPLETED = "FULLY_COMPLETED"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"


class AnswerStatus(str, enum.Enum):
    """Status of a single answer in the ledger."""

    NOT_ANSWERED = "NOT_ANSWERED"
    CORRECT = "CORRECT"
    INCORRECT = "INCORRECT"
    SKIPPED = "SKIPPED"


class AbandonReason(str, enum.Enum):
    """Why a live test was paused."""

    USER_QUIT = "USER_QUIT"
    AUTO_TIMEOUT = "AUTO_TIMEOUT"
    CONNECTION_LOST = "CONNECTION_LOST"
    APP_BACKGROUNDED = "APP_BACKGROUNDED"
    OTHER = "OTHER"


class ScoreIncompleteAs(str, enum.Enum):
    """How unanswered questions count toward accuracy at completion."""

    EXCLUDED = "EXCLUDED"
    INCORRECT = "INCORRECT"


class StatusEventType(str, enum.Enum):
    """Append-only lifecycle event recorded against a session."""

    PAUSED = "PAUSED"
    RESUMED = "RESUMED"
    COMPLETED = "COMPLETED"


class InteractionType(str, enum.Enum):
    """Audit log action types written by the quiz engine."""

    TEST_START = "test_start"
    ANSWER_SUBMITTED = "answer_submitted"
    TEST_PAUSED = "test_paused"
    TEST_RESUMED = "test_resumed"
    TEST_COMPLETED = "test_completed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """User model. Identity is issued elsewhere; the quiz engine only reads it."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    tests = relationship("Test", back_populates="user", cascade="all, delete-orphan")
    leaderboard = relationship(
        "UserLeaderboard",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )


class Subject(Base):
    """Top-level catalog grouping (e.g. Pharmacology)."""

    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)


class Topic(Base):
    """Catalog topic within a subject."""

    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    subject_id = Column(
        Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
    )


class System(Base):
    """Organ system (e.g. Cardiovascular)."""

    __tablename__ = "systems"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)


class Question(Base):
    """Multiple-choice question from the catalog."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    question_text = Column(Text, nullable=False)
    explanation = Column(Text)
    difficulty = Column(Enum(DifficultyLevel), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id"), nullable=True, index=True)
    system_id = Column(Integer, ForeignKey("systems.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Running counters, updated on every submitted answer
    total_attempts = Column(Integer, default=0, nullable=False)
    correct_attempts = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    options = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="AnswerOption.display_order",
    )


class AnswerOption(Base):
    """One selectable option of a question. is_correct never leaves the server
    while a test is in progress."""

    __tablename__ = "answer_options"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    question = relationship("Question", back_populates="options")


class Test(Base):
    """One quiz attempt by a user.

    `version` is the optimistic concurrency counter: every UPDATE is issued
    with the version that was read, so a write based on a stale read raises
    StaleDataError instead of silently overwriting a concurrent transition.
    """

    __tablename__ = "tests"
    __test__ = False  # not a pytest class

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(200), nullable=False)
    status = Column(Enum(TestStatus), default=TestStatus.ACTIVE, nullable=False)
    completion_status = Column(Enum(CompletionStatus), nullable=True)
    mode = Column(Enum(TestMode), default=TestMode.TUTOR, nullable=False)
    difficulty = Column(Enum(TestDifficulty), default=TestDifficulty.MIXED, nullable=False)
    selection_filters = Column(JSON, nullable=True)  # {"subjects": [...], ...}

    total_questions = Column(Integer, nullable=False)
    time_limit = Column(Integer, nullable=True)  # Minutes, None when untimed

    # Write-through cache of the answer ledger
    answered_count = Column(Integer, default=0, nullable=False)
    skipped_count = Column(Integer, default=0, nullable=False)
    unanswered_count = Column(Integer, default=0, nullable=False)

    # Final results, meaningful only once COMPLETED
    score = Column(Float, nullable=True)
    total_correct = Column(Integer, default=0, nullable=False)
    total_incorrect = Column(Integer, default=0, nullable=False)
    total_skipped = Column(Integer, default=0, nullable=False)
    total_points = Column(Integer, default=0, nullable=False)

    session_token = Column(String(64), nullable=True)  # Live token, None when not live
    started_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    paused_at = Column(DateTime(timezone=True))
    resumed_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True), index=True)
    last_activity_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    attempt_number = Column(Integer, default=1, nullable=False)
    abandon_reason = Column(Enum(AbandonReason), nullable=True)

    # Incomplete-test scoring policy
    apply_incomplete_penalty = Column(Boolean, default=False, nullable=False)
    incomplete_penalty = Column(Float, default=0.8, nullable=False)
    score_incomplete_as = Column(
        Enum(ScoreIncompleteAs), default=ScoreIncompleteAs.EXCLUDED, nullable=False
    )

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="tests")
    test_questions = relationship(
        "TestQuestion",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="TestQuestion.display_order",
    )
    answers = relationship("Answer", back_populates="test", cascade="all, delete-orphan")
    sessions = relationship(
        "TestSession",
        back_populates="test",
        cascade="all, delete-orphan",
        order_by="TestSession.session_number",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_tests_user_status", "user_id", "status"),
        CheckConstraint(
            "total_questions >= 1 AND total_questions <= 100",
            name="ck_tests_total_questions_range",
        ),
        CheckConstraint(
            "incomplete_penalty > 0 AND incomplete_penalty <= 1",
            name="ck_tests_incomplete_penalty_range",
        ),
    )


class TestQuestion(Base):
    """Ordered association between a test and its questions. Immutable."""

    __tablename__ = "test_questions"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    display_order = Column(Integer, nullable=False)

    test = relationship("Test", back_populates="test_questions")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint("test_id", "question_id", name="uq_test_question"),
        Index("ix_test_questions_test_id", "test_id"),
    )


class Answer(Base):
    """The answer ledger: at most one row per (test, question)."""

    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    selected_option_id = Column(
        Integer, ForeignKey("answer_options.id", ondelete="SET NULL"), nullable=True
    )
    status = Column(
        Enum(AnswerStatus), default=AnswerStatus.NOT_ANSWERED, nullable=False
    )
    is_correct = Column(Boolean, nullable=True)  # None for skipped answers
    time_spent = Column(Integer, default=0, nullable=False)  # Seconds
    answered_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    test = relationship("Test", back_populates="answers")
    question = relationship("Question")
    question_score = relationship(
        "QuestionScore",
        back_populates="answer",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("test_id", "question_id", name="uq_answer_test_question"),
        # Same-day streak lookup
        Index("ix_answers_user_status_answered", "user_id", "status", "answered_at"),
    )


class QuestionScore(Base):
    """Points awarded for a correct answer, with the multipliers that produced them."""

    __tablename__ = "question_scores"

    id = Column(Integer, primary_key=True, index=True)
    answer_id = Column(
        Integer,
        ForeignKey("answers.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    base_points = Column(Integer, nullable=False)
    difficulty = Column(Enum(DifficultyLevel), nullable=False)
    time_bonus = Column(Float, default=1.0, nullable=False)
    streak_multiplier = Column(Float, default=1.0, nullable=False)
    total_points = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    answer = relationship("Answer", back_populates="question_score")


class TestSession(Base):
    """One contiguous period of engagement with a test.

    session_number is strictly increasing per test and never reused.
    """

    __tablename__ = "test_sessions"
    __test__ = False

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    session_number = Column(Integer, nullable=False)
    started_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    paused_at = Column(DateTime(timezone=True))
    resumed_at = Column(DateTime(timezone=True))
    ended_at = Column(DateTime(timezone=True))
    can_resume = Column(Boolean, default=True, nullable=False)
    resume_deadline = Column(DateTime(timezone=True))
    resume_attempts = Column(Integer, default=0, nullable=False)
    max_resume_attempts = Column(Integer, default=3, nullable=False)
    device_type = Column(String(20))  # "mobile" | "desktop"
    browser = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    test = relationship("Test", back_populates="sessions")
    status_events = relationship(
        "StatusEvent",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="StatusEvent.id",
    )

    __table_args__ = (
        UniqueConstraint("test_id", "session_number", name="uq_test_session_number"),
        CheckConstraint("resume_attempts >= 0", name="ck_test_sessions_attempts"),
    )


class StatusEvent(Base):
    """Append-only lifecycle event (pause, resume, completion) for a session."""

    __tablename__ = "status_events"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer,
        ForeignKey("test_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_type = Column(Enum(StatusEventType), nullable=False)
    reason = Column(String(50))
    question_index = Column(Integer)
    questions_answered = Column(Integer)
    questions_skipped = Column(Integer)
    questions_unanswered = Column(Integer)
    attempt_number = Column(Integer)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    session = relationship("TestSession", back_populates="status_events")


class UserLeaderboard(Base):
    """Per-user aggregate updated on every test completion."""

    __tablename__ = "user_leaderboards"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    total_tests = Column(Integer, default=0, nullable=False)
    average_score = Column(Float, default=0.0, nullable=False)
    total_points = Column(Integer, default=0, nullable=False)
    total_correct_answers = Column(Integer, default=0, nullable=False)
    total_questions_answered = Column(Integer, default=0, nullable=False)
    overall_success_rate = Column(Float, default=0.0, nullable=False)
    last_activity_date = Column(DateTime(timezone=True))
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    user = relationship("User", back_populates="leaderboard")


class UserInteraction(Base):
    """Audit log entry. `payload` holds the typed per-action payload as JSON."""

    __tablename__ = "user_interactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action_type = Column(Enum(InteractionType), nullable=False)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="SET NULL"), nullable=True)
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="SET NULL"), nullable=True
    )
    answer_id = Column(Integer, ForeignKey("answers.id", ondelete="SET NULL"), nullable=True)
    duration_ms = Column(Integer)
    payload = Column(JSON, nullable=True)
    client_ip = Column(String(64))
    user_agent = Column(String(512))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (Index("ix_user_interactions_user_action", "user_id", "action_type"),)
