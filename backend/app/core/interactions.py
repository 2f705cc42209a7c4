"""
Interaction audit log for quiz lifecycle transitions.

Each transition writes one UserInteraction row whose payload is a typed
model selected by `action_type`. Writes are best effort: they run inside a
savepoint under graceful_failure, so a failed audit write is logged and
discarded without failing the transition that triggered it.
"""
import logging
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter
from sqlalchemy.orm import Session

from app.core.caller_context import CallerContext
from app.core.graceful_failure import graceful_failure
from app.models.models import (
    AbandonReason,
    AnswerStatus,
    CompletionStatus,
    InteractionType,
    TestDifficulty,
    TestMode,
    UserInteraction,
)

logger = logging.getLogger(__name__)


class StartPayload(BaseModel):
    action_type: Literal[InteractionType.TEST_START] = InteractionType.TEST_START
    question_count: int
    mode: TestMode
    difficulty: TestDifficulty
    time_limit: Optional[int] = None
    device_type: str


class AnswerPayload(BaseModel):
    action_type: Literal[InteractionType.ANSWER_SUBMITTED] = (
        InteractionType.ANSWER_SUBMITTED
    )
    status: AnswerStatus
    is_correct: Optional[bool] = None
    points: int = 0
    selected_option_id: Optional[int] = None


class PausePayload(BaseModel):
    action_type: Literal[InteractionType.TEST_PAUSED] = InteractionType.TEST_PAUSED
    abandon_reason: AbandonReason
    session_number: int
    questions_answered: int
    questions_skipped: int


class ResumePayload(BaseModel):
    action_type: Literal[InteractionType.TEST_RESUMED] = InteractionType.TEST_RESUMED
    session_number: int
    attempt_number: int
    resume_attempts: int


class CompletionPayload(BaseModel):
    action_type: Literal[InteractionType.TEST_COMPLETED] = (
        InteractionType.TEST_COMPLETED
    )
    completion_status: CompletionStatus
    final_score: float
    total_points: int
    correct: int
    incorrect: int
    skipped: int
    unanswered: int
    forced: bool = False
    reason: str


InteractionPayload = Annotated[
    Union[StartPayload, AnswerPayload, PausePayload, ResumePayload, CompletionPayload],
    Field(discriminator="action_type"),
]

_payload_adapter: TypeAdapter[InteractionPayload] = TypeAdapter(InteractionPayload)


def load_payload(raw: dict) -> InteractionPayload:
    """Parse a stored payload back into its typed model."""
    return _payload_adapter.validate_python(raw)


def record_interaction(
    db: Session,
    caller: CallerContext,
    payload: InteractionPayload,
    *,
    test_id: Optional[int] = None,
    question_id: Optional[int] = None,
    answer_id: Optional[int] = None,
    duration_ms: Optional[int] = None,
) -> None:
    """
    Append an interaction row for the caller. Never raises.

    Pending changes of the surrounding unit are flushed first so that a
    concurrency failure in them surfaces to the caller instead of being
    swallowed with the audit write.
    """
    db.flush()

    action = payload.action_type
    logger.info(
        f"Interaction: {action.value}",
        extra={"user_id": caller.user_id, "test_id": test_id},
    )

    with graceful_failure(
        "record interaction",
        logger,
        context={"action": action.value, "test_id": test_id},
    ):
        with db.begin_nested():
            db.add(
                UserInteraction(
                    user_id=caller.user_id,
                    action_type=action,
                    test_id=test_id,
                    question_id=question_id,
                    answer_id=answer_id,
                    duration_ms=duration_ms,
                    payload=payload.model_dump(mode="json"),
                    client_ip=caller.client_ip,
                    user_agent=caller.browser,
                )
            )
