"""
Models package for the MedPrep backend.
"""
from .base import Base, engine, SessionLocal, get_db
from .models import (
    User,
    Subject,
    Topic,
    System,
    Question,
    AnswerOption,
    Test,
    TestQuestion,
    Answer,
    QuestionScore,
    TestSession,
    StatusEvent,
    UserLeaderboard,
    UserInteraction,
    DifficultyLevel,
    TestDifficulty,
    TestMode,
    TestStatus,
    CompletionStatus,
    AnswerStatus,
    AbandonReason,
    ScoreIncompleteAs,
    StatusEventType,
    InteractionType,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "User",
    "Subject",
    "Topic",
    "System",
    "Question",
    "AnswerOption",
    "Test",
    "TestQuestion",
    "Answer",
    "QuestionScore",
    "TestSession",
    "StatusEvent",
    "UserLeaderboard",
    "UserInteraction",
    "DifficultyLevel",
    "TestDifficulty",
    "TestMode",
    "TestStatus",
    "CompletionStatus",
    "AnswerStatus",
    "AbandonReason",
    "ScoreIncompleteAs",
    "StatusEventType",
    "InteractionType",
]
