"""
Pydantic schemas for request/response validation.
"""
from .questions import (
    AnswerOptionResponse,
    QuestionResponse,
)
from .tests import (
    AutoCompleteRequest,
    CompleteRequest,
    CompletionResponse,
    CreatedTestResponse,
    CreateTestRequest,
    HeartbeatRequest,
    HeartbeatResponse,
    PauseRequest,
    PauseResponse,
    RecoveryHistoryResponse,
    ResumeCheckResponse,
    ResumeResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
    TestDetailResponse,
    TestListResponse,
    TestResultsResponse,
    TestStatusResponse,
)

__all__ = [
    # Questions
    "AnswerOptionResponse",
    "QuestionResponse",
    # Tests
    "AutoCompleteRequest",
    "CompleteRequest",
    "CompletionResponse",
    "CreatedTestResponse",
    "CreateTestRequest",
    "HeartbeatRequest",
    "HeartbeatResponse",
    "PauseRequest",
    "PauseResponse",
    "RecoveryHistoryResponse",
    "ResumeCheckResponse",
    "ResumeResponse",
    "SubmitAnswerRequest",
    "SubmitAnswerResponse",
    "TestDetailResponse",
    "TestListResponse",
    "TestResultsResponse",
    "TestStatusResponse",
]
