"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Settings require secrets; the engine module reads DATABASE_URL at import.
# Both must be in place before anything under app/ is imported.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./medprep_local.db")
os.environ.setdefault("ENV", "test")

from contextlib import asynccontextmanager  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402
from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.models import (  # noqa: E402
    Base,
    get_db,
    AnswerOption,
    DifficultyLevel,
    Question,
    Subject,
    System,
    Topic,
    User,
)
from app.main import app  # noqa: E402
from app.core.auth.security import create_access_token  # noqa: E402
from app.core.caller_context import CallerContext  # noqa: E402
from app.core.test_composition import create_test  # noqa: E402


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests.

    Skips error tracking initialization.
    """
    yield


# Neutralize the production lifespan on the singleton app so TestClient
# never boots Sentry.
app.router.lifespan_context = _test_lifespan


def create_test_application():
    """Create the production app with the lifespan disabled.

    Use this instead of ``create_application()`` from ``app.main`` when
    tests need a fresh app instance. Returns the full app (all routes,
    middleware, exception handlers).
    """
    from app.main import create_application

    test_app = create_application()
    test_app.router.lifespan_context = _test_lifespan
    return test_app


# Use SQLite for tests. The path is relative to this file so the .db
# lands inside tests/ regardless of the working directory.
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday 2026-03-02 09:00 UTC
FROZEN_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database dependency override.

    Each request gets its own session on the same test.db file where
    db_session creates data.
    """

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def testing_session_local():
    """Expose TestingSessionLocal for tests that need a second session."""
    return TestingSessionLocal


class FrozenClock:
    """Callable stand-in for utc_now that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """
    Freeze the quiz engine clock at FROZEN_NOW.

    Every engine module imports utc_now by name, so each one is patched.
    """
    frozen = FrozenClock(FROZEN_NOW)
    with patch("app.core.test_composition.utc_now", frozen), patch(
        "app.core.answer_ledger.utc_now", frozen
    ), patch("app.core.test_lifecycle.utc_now", frozen):
        yield frozen


@pytest.fixture
def test_user(db_session):
    """
    Create a test user in the database.
    """
    user = User(email="test@example.com", display_name="Test User")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session):
    """A second user who does not own the tests created by test_user."""
    user = User(email="other@example.com", display_name="Other User")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user):
    """
    Create authentication headers for test user.
    """
    access_token = create_access_token({"user_id": test_user.id})
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def other_auth_headers(other_user):
    access_token = create_access_token({"user_id": other_user.id})
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def caller(test_user):
    """Caller context for test_user on a mobile browser."""
    return CallerContext(
        user_id=test_user.id,
        user_agent="Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)",
        client_ip="203.0.113.7",
    )


@pytest.fixture
def other_caller(other_user):
    return CallerContext(user_id=other_user.id, user_agent="pytest", client_ip="127.0.0.1")


def _add_question(db, difficulty, subject, *, topic=None, system=None, active=True, n=0):
    question = Question(
        question_text=f"{subject.name} {difficulty.value.lower()} question {n}",
        explanation=f"Explanation for {subject.name} question {n}.",
        difficulty=difficulty,
        subject_id=subject.id,
        topic_id=topic.id if topic else None,
        system_id=system.id if system else None,
        is_active=active,
    )
    # Option B (display_order 2) is always the correct one
    question.options = [
        AnswerOption(
            option_text=label,
            is_correct=(label == "B"),
            display_order=order,
        )
        for order, label in enumerate(["A", "B", "C", "D"], start=1)
    ]
    db.add(question)
    return question


@pytest.fixture
def question_bank(db_session):
    """
    Create a small catalog.

    - Pharmacology: 4 EASY, 4 MEDIUM, 4 HARD active questions plus one
      inactive EASY question. MEDIUM questions belong to the Antiarrhythmics
      topic, HARD questions to the Cardiovascular system.
    - Pathology: 2 MEDIUM questions, no topic or system.
    """
    pharmacology = Subject(name="Pharmacology")
    pathology = Subject(name="Pathology")
    cardiovascular = System(name="Cardiovascular")
    db_session.add_all([pharmacology, pathology, cardiovascular])
    db_session.flush()

    antiarrhythmics = Topic(name="Antiarrhythmics", subject_id=pharmacology.id)
    db_session.add(antiarrhythmics)
    db_session.flush()

    questions = {level: [] for level in DifficultyLevel}
    n = 0
    for level in DifficultyLevel:
        for _ in range(4):
            n += 1
            questions[level].append(
                _add_question(
                    db_session,
                    level,
                    pharmacology,
                    topic=antiarrhythmics if level == DifficultyLevel.MEDIUM else None,
                    system=cardiovascular if level == DifficultyLevel.HARD else None,
                    n=n,
                )
            )
    inactive = _add_question(
        db_session, DifficultyLevel.EASY, pharmacology, active=False, n=99
    )
    pathology_questions = [
        _add_question(db_session, DifficultyLevel.MEDIUM, pathology, n=100 + i)
        for i in range(2)
    ]
    db_session.commit()

    return SimpleNamespace(
        pharmacology_id=pharmacology.id,
        pathology_id=pathology.id,
        cardiovascular_id=cardiovascular.id,
        antiarrhythmics_id=antiarrhythmics.id,
        easy_ids=[q.id for q in questions[DifficultyLevel.EASY]],
        medium_ids=[q.id for q in questions[DifficultyLevel.MEDIUM]],
        hard_ids=[q.id for q in questions[DifficultyLevel.HARD]],
        inactive_id=inactive.id,
        pathology_ids=[q.id for q in pathology_questions],
    )


@pytest.fixture
def option_ids(db_session):
    """
    Return a lookup: question_id -> (correct_option_id, wrong_option_id).
    """

    def _lookup(question_id):
        options = (
            db_session.query(AnswerOption)
            .filter(AnswerOption.question_id == question_id)
            .order_by(AnswerOption.display_order)
            .all()
        )
        correct = next(o.id for o in options if o.is_correct)
        wrong = next(o.id for o in options if not o.is_correct)
        return correct, wrong

    return _lookup


@pytest.fixture
def make_test(db_session, caller, question_bank):
    """
    Factory creating a test for `caller` through the composition engine.

    Defaults to 3 questions from Pharmacology; keyword arguments override.
    """

    def _make(**overrides):
        options = {"subjects": [question_bank.pharmacology_id], "question_count": 3}
        options.update(overrides)
        return create_test(db_session, options.pop("caller", caller), **options)

    return _make
