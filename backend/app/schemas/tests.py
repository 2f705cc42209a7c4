"""
Pydantic schemas for test lifecycle endpoints.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import datetime

from app.core.error_responses import ErrorReason, RecommendedAction
from app.core.validators import IdValidator, TextValidator
from app.models.models import (
    AbandonReason,
    AnswerStatus,
    CompletionStatus,
    ScoreIncompleteAs,
    StatusEventType,
    TestDifficulty,
    TestMode,
    TestStatus,
)
from app.schemas.questions import QuestionResponse


# =============================================================================
# Requests
# =============================================================================


class CreateTestRequest(BaseModel):
    """Schema for creating a new test.

    The question count range is enforced by the engine so that an
    out-of-range count is reported with the `invalid_question_count` reason.
    """

    subjects: List[int] = Field(default_factory=list, description="Subject IDs")
    topics: List[int] = Field(default_factory=list, description="Topic IDs")
    systems: List[int] = Field(default_factory=list, description="System IDs")
    difficulty: TestDifficulty = Field(
        TestDifficulty.MIXED, description="Difficulty filter (MIXED = any)"
    )
    question_count: Optional[int] = Field(
        None, description="Number of questions (defaults to 10)"
    )
    mode: TestMode = Field(TestMode.TUTOR, description="TUTOR or TIMED")
    time_limit: Optional[int] = Field(
        None, ge=1, description="Time limit in minutes (omit for untimed)"
    )
    apply_incomplete_penalty: Optional[bool] = Field(
        None, description="Apply the incomplete penalty when questions are left unanswered"
    )
    incomplete_penalty: Optional[float] = Field(
        None, gt=0.0, le=1.0, description="Accuracy multiplier for incomplete tests"
    )
    score_incomplete_as: ScoreIncompleteAs = Field(
        ScoreIncompleteAs.EXCLUDED,
        description="Whether unanswered questions count as incorrect",
    )

    @field_validator("subjects")
    @classmethod
    def validate_subjects(cls, v: List[int]) -> List[int]:
        return IdValidator.normalize_id_list(v, "Subject ID")

    @field_validator("topics")
    @classmethod
    def validate_topics(cls, v: List[int]) -> List[int]:
        return IdValidator.normalize_id_list(v, "Topic ID")

    @field_validator("systems")
    @classmethod
    def validate_systems(cls, v: List[int]) -> List[int]:
        return IdValidator.normalize_id_list(v, "System ID")


class SubmitAnswerRequest(BaseModel):
    """Schema for submitting (or skipping) one answer."""

    question_id: int = Field(..., description="Question being answered")
    selected_option_id: Optional[int] = Field(
        None, description="Chosen option ID; omit or null to skip"
    )
    time_spent: int = Field(0, ge=0, description="Seconds spent on the question")

    @field_validator("question_id")
    @classmethod
    def validate_question_id(cls, v: int) -> int:
        return IdValidator.validate_positive_id(v, "Question ID")


class ProgressSnapshot(BaseModel):
    """Client-reported progress sent with heartbeats and pauses."""

    questions_answered: Optional[int] = Field(None, ge=0)
    questions_skipped: Optional[int] = Field(None, ge=0)
    current_question_index: Optional[int] = Field(None, ge=0)


class HeartbeatRequest(ProgressSnapshot):
    """Schema for a liveness heartbeat."""

    session_token: str = Field(..., description="Token of the live session")
    time_elapsed: Optional[int] = Field(
        None, ge=0, description="Seconds elapsed on the client clock"
    )

    @field_validator("session_token")
    @classmethod
    def validate_session_token(cls, v: str) -> str:
        return TextValidator.validate_non_empty_text(v, "Session token")


class PauseRequest(ProgressSnapshot):
    """Schema for pausing a test."""

    reason: AbandonReason = Field(
        AbandonReason.USER_QUIT, description="Why the test is being paused"
    )
    event_reason: str = Field(
        "USER_ACTION", max_length=50, description="Reason recorded on the status event"
    )


class CompleteRequest(BaseModel):
    """Schema for explicit completion."""

    reason: str = Field("USER_SUBMITTED", max_length=50)


class AutoCompleteRequest(BaseModel):
    """Schema for automatic completion (time expiry, abandoned test cleanup)."""

    reason: str = Field("AUTO_COMPLETE", max_length=50)
    forced: bool = Field(
        False, description="Complete even if the test could still be resumed"
    )


# =============================================================================
# Responses
# =============================================================================


class CreatedTestResponse(BaseModel):
    """Schema for a newly created test."""

    id: int = Field(..., description="Test ID")
    title: str
    status: TestStatus
    mode: TestMode
    difficulty: TestDifficulty
    total_questions: int
    time_limit: Optional[int] = None
    session_token: str = Field(..., description="Token for heartbeats on this session")
    session_number: int
    started_at: datetime
    questions: List[QuestionResponse]


class PointsBreakdownResponse(BaseModel):
    base_points: int
    time_bonus: float
    streak_multiplier: float
    total_points: int

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class AnswerRecordResponse(BaseModel):
    id: int
    question_id: int
    status: AnswerStatus
    is_correct: Optional[bool] = None
    time_spent: int


class AnswerFeedback(BaseModel):
    correct: Optional[bool] = None
    message: str


class SubmitAnswerResponse(BaseModel):
    """Schema for the result of an answer submission."""

    answer: AnswerRecordResponse
    points: int
    breakdown: Optional[PointsBreakdownResponse] = None
    feedback: AnswerFeedback


class HeartbeatResponse(BaseModel):
    """Schema for a successful heartbeat."""

    session_active: bool = True
    time_remaining: Optional[int] = Field(
        None, description="Seconds left on the time limit, null when untimed"
    )
    inactivity_minutes: float
    max_inactivity_minutes: int
    time_expired: bool = Field(
        False, description="True once a timed test has no time remaining"
    )


class PauseResponse(BaseModel):
    """Schema for a paused test."""

    test_id: int
    status: TestStatus
    paused_at: datetime
    abandon_reason: AbandonReason
    session_number: int
    resume_deadline: datetime
    resume_window_minutes: int
    max_resume_attempts: int
    questions_answered: int
    questions_skipped: int


class ResumeCheckResponse(BaseModel):
    """Schema for the dry-run resume check."""

    can_resume: bool
    reason: Optional[ErrorReason] = None
    recommended_action: RecommendedAction
    status: TestStatus
    session_number: Optional[int] = None
    resume_deadline: Optional[datetime] = None
    resume_attempts: int = 0
    max_resume_attempts: int = 0
    minutes_until_deadline: Optional[float] = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ResumeResponse(BaseModel):
    """Schema for a resumed test."""

    test_id: int
    status: TestStatus
    session_token: str
    attempt_number: int
    session_number: int
    resume_attempts: int
    resumed_at: datetime
    time_remaining: Optional[int] = None


class PenaltyInfo(BaseModel):
    applied: bool
    percentage: float
    description: str


class DifficultyBreakdown(BaseModel):
    total: int
    correct: int
    points: int
    accuracy: float


class CompletionResponse(BaseModel):
    """Schema for a completed test."""

    test_id: int
    status: TestStatus
    completion_status: CompletionStatus
    final_score: float
    accuracy: float
    total_points: int
    correct: int
    incorrect: int
    skipped: int
    unanswered: int
    answered: int
    total_questions: int
    total_time_spent: int
    score_incomplete_as: ScoreIncompleteAs
    penalty: PenaltyInfo
    by_difficulty: Dict[str, DifficultyBreakdown]
    completed_at: datetime


class ActiveSessionInfo(BaseModel):
    session_number: int
    resume_deadline: Optional[datetime] = None
    resume_attempts: int
    max_resume_attempts: int
    questions_answered: int
    questions_skipped: int


class CompletedTestInfo(BaseModel):
    final_score: Optional[float] = None
    completion_status: Optional[CompletionStatus] = None
    completed_at: Optional[datetime] = None


class TestStatusResponse(BaseModel):
    """Schema for the recommended next action on a test."""

    test_id: int
    status: TestStatus
    recommended_action: RecommendedAction
    can_resume: bool
    reason: Optional[ErrorReason] = None
    inactivity_minutes: Optional[float] = None
    session_expired: bool = False
    active_session: Optional[ActiveSessionInfo] = None
    completed: Optional[CompletedTestInfo] = None


class ResultsSummary(BaseModel):
    final_score: float
    accuracy: float
    total_points: int
    correct: int
    incorrect: int
    skipped: int
    unanswered: int
    total_questions: int
    total_time_spent: int
    average_time_per_question: float
    completion_status: Optional[CompletionStatus] = None
    completed_at: Optional[datetime] = None


class QuestionResult(BaseModel):
    question_id: int
    display_order: int
    question_text: str
    difficulty: str
    explanation: Optional[str] = None
    selected_option_id: Optional[int] = None
    correct_option_id: Optional[int] = None
    status: AnswerStatus
    is_correct: Optional[bool] = None
    time_spent: int = 0
    points: int = 0
    base_points: Optional[int] = None
    time_bonus: Optional[float] = None
    streak_multiplier: Optional[float] = None


class TestResultsResponse(BaseModel):
    """Schema for the results breakdown of a completed test."""

    test_id: int
    title: str
    summary: ResultsSummary
    by_difficulty: Dict[str, DifficultyBreakdown]
    questions: List[QuestionResult]


class TestProgress(BaseModel):
    answered: int
    correct: int
    incorrect: int
    skipped: int
    remaining: int
    current_points: int


class AnswerStateResponse(BaseModel):
    question_id: int
    selected_option_id: Optional[int] = None
    status: AnswerStatus
    time_spent: int
    is_correct: Optional[bool] = Field(
        None, description="Revealed only once the test is completed"
    )


class TestDetailResponse(BaseModel):
    """Schema for test detail and progress."""

    id: int
    title: str
    status: TestStatus
    mode: TestMode
    difficulty: TestDifficulty
    total_questions: int
    time_limit: Optional[int] = None
    attempt_number: int
    started_at: datetime
    last_activity_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    score: Optional[float] = None
    progress: TestProgress
    questions: List[QuestionResponse]
    answers: List[AnswerStateResponse]


class TestSummary(BaseModel):
    id: int
    title: str
    status: TestStatus
    mode: TestMode
    total_questions: int
    score: Optional[float] = None
    total_points: int
    accuracy: Optional[float] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class TestListResponse(BaseModel):
    """Schema for a page of the caller's tests."""

    tests: List[TestSummary]
    total_count: int
    limit: int
    offset: int
    has_more: bool


class StatusEventResponse(BaseModel):
    id: int
    session_number: int
    event_type: StatusEventType
    reason: Optional[str] = None
    question_index: Optional[int] = None
    questions_answered: Optional[int] = None
    questions_skipped: Optional[int] = None
    questions_unanswered: Optional[int] = None
    attempt_number: Optional[int] = None
    created_at: datetime


class SessionHistoryResponse(BaseModel):
    session_number: int
    started_at: datetime
    paused_at: Optional[datetime] = None
    resumed_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    can_resume: bool
    resume_deadline: Optional[datetime] = None
    resume_attempts: int
    max_resume_attempts: int
    device_type: Optional[str] = None
    events: List[StatusEventResponse]


class RecoveryHistoryResponse(BaseModel):
    """Schema for the full pause/resume history of a test."""

    test_id: int
    status: TestStatus
    sessions: List[SessionHistoryResponse]
    events: List[StatusEventResponse]
    total_sessions: int
    total_resume_attempts: int
