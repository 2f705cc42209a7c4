"""
Pydantic schemas for questions delivered to the quiz-taking client.

Option correctness is deliberately absent: these schemas are used for every
response sent while a test is in progress.
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class AnswerOptionResponse(BaseModel):
    """Schema for a selectable answer option (no correctness flag)."""

    id: int = Field(..., description="Option ID")
    option_text: str = Field(..., description="Option text")
    display_order: int = Field(..., description="Position of the option")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class QuestionResponse(BaseModel):
    """Schema for a question within a test."""

    id: int = Field(..., description="Question ID")
    question_text: str = Field(..., description="The question text")
    difficulty: str = Field(..., description="Difficulty (EASY, MEDIUM, HARD)")
    subject_id: Optional[int] = Field(None, description="Subject ID")
    topic_id: Optional[int] = Field(None, description="Topic ID")
    system_id: Optional[int] = Field(None, description="System ID")
    display_order: int = Field(..., description="Position of the question in the test")
    options: List[AnswerOptionResponse] = Field(
        default_factory=list, description="Answer options without correctness"
    )
    explanation: Optional[str] = Field(
        None, description="Explanation (only once the test is completed)"
    )
