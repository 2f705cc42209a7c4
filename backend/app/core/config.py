"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "MedPrep API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Security
    # IMPORTANT: These MUST be set in .env file - no defaults for security
    SECRET_KEY: str = Field(..., description="Application secret key (required)")
    JWT_SECRET_KEY: str = Field(..., description="JWT signing secret key (required)")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Test composition
    TEST_MIN_QUESTIONS: int = 1
    TEST_MAX_QUESTIONS: int = 100
    TEST_DEFAULT_QUESTIONS: int = 10
    # Candidates fetched per requested question before shuffling
    QUESTION_POOL_OVERFETCH_FACTOR: int = Field(default=2, ge=1)
    DEFAULT_TIME_LIMIT_MINUTES: Optional[int] = None

    # Session liveness and resumption
    INACTIVITY_TIMEOUT_MINUTES: int = Field(default=30, ge=1)
    RESUME_WINDOW_MINUTES: int = Field(default=15, ge=1)
    MAX_RESUME_ATTEMPTS: int = Field(default=3, ge=1)

    # Incomplete-test scoring policy defaults
    DEFAULT_APPLY_INCOMPLETE_PENALTY: bool = False
    DEFAULT_INCOMPLETE_PENALTY: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Multiplier applied to accuracy when questions were left unanswered",
    )

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_question_bounds(self) -> Self:
        """Validate TEST_MIN_QUESTIONS <= TEST_DEFAULT_QUESTIONS <= TEST_MAX_QUESTIONS."""
        if self.TEST_MIN_QUESTIONS < 1:
            raise ValueError("TEST_MIN_QUESTIONS must be at least 1")
        if self.TEST_MIN_QUESTIONS > self.TEST_MAX_QUESTIONS:
            raise ValueError(
                f"TEST_MIN_QUESTIONS ({self.TEST_MIN_QUESTIONS}) must not exceed "
                f"TEST_MAX_QUESTIONS ({self.TEST_MAX_QUESTIONS})"
            )
        if not (
            self.TEST_MIN_QUESTIONS
            <= self.TEST_DEFAULT_QUESTIONS
            <= self.TEST_MAX_QUESTIONS
        ):
            raise ValueError(
                "TEST_DEFAULT_QUESTIONS must lie between TEST_MIN_QUESTIONS "
                "and TEST_MAX_QUESTIONS"
            )
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
