"""
Utility functions for converting Question models to client-safe schemas.
"""

from app.models.models import Question
from app.schemas.questions import AnswerOptionResponse, QuestionResponse


def question_to_response(
    question: Question, display_order: int, include_explanation: bool = False
) -> QuestionResponse:
    """
    Convert a Question model to QuestionResponse schema.

    Options are copied without their is_correct flag, so the result is safe to
    send to a client while the test is in progress.

    Args:
        question: The Question model instance to convert
        display_order: Position of the question within the test
        include_explanation: Whether to include the explanation field (default: False)

    Returns:
        QuestionResponse schema
    """
    return QuestionResponse(
        id=question.id,
        question_text=question.question_text,
        difficulty=question.difficulty.value,
        subject_id=question.subject_id,
        topic_id=question.topic_id,
        system_id=question.system_id,
        display_order=display_order,
        options=[
            AnswerOptionResponse(
                id=option.id,
                option_text=option.option_text,
                display_order=option.display_order,
            )
            for option in question.options
        ],
        explanation=question.explanation if include_explanation else None,
    )
