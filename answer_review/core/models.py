"""
Data models for the answer evaluation pipeline.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Question(BaseModel):
    """Interview question with the answer the user is graded against."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    reference_answer: str


class TranscriptSegment(BaseModel):
    """One unit of speech-recognition output, interim or final."""

    model_config = ConfigDict(frozen=True)

    text: str
    is_final: bool = True


class AIResponse(BaseModel):
    """Validated evaluation of a single answer."""

    model_config = ConfigDict(frozen=True)

    rating: int = Field(ge=1, le=10)
    feedback: str

    @property
    def band(self) -> Literal["good", "fair", "poor"]:
        """Coarse rating bucket used by presentation layers."""
        if self.rating >= 7:
            return "good"
        if self.rating >= 4:
            return "fair"
        return "poor"


class AnswerKey(BaseModel):
    """Idempotency key: one saved answer per user, question and interview."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    question_text: str
    interview_id: str

    def as_filters(self) -> dict[str, str]:
        """Equality filters matching this key in the document store."""
        return self.model_dump()


class AnswerRecord(BaseModel):
    """Persisted answer with its evaluation."""

    interview_id: str
    question_text: str
    reference_answer: str
    user_answer: str
    feedback: str
    rating: int
    user_id: str
    created_at: Optional[datetime] = None

    @property
    def key(self) -> AnswerKey:
        return AnswerKey(
            user_id=self.user_id,
            question_text=self.question_text,
            interview_id=self.interview_id,
        )

    @classmethod
    def from_evaluation(
        cls,
        key: AnswerKey,
        question: Question,
        user_answer: str,
        ai_response: AIResponse,
    ) -> "AnswerRecord":
        return cls(
            interview_id=key.interview_id,
            question_text=key.question_text,
            reference_answer=question.reference_answer,
            user_answer=user_answer,
            feedback=ai_response.feedback,
            rating=ai_response.rating,
            user_id=key.user_id,
        )


class SaveOutcome(str, Enum):
    """Result of a save request."""

    SAVED = "saved"
    ALREADY_ANSWERED = "already_answered"
