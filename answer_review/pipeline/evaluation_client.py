"""
LLM-backed evaluation of a transcribed answer against the reference answer.
"""

import asyncio
import logging
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from answer_review.core.errors import (
    EvaluationTimeoutError,
    EvaluationTransportError,
    ValidationError,
)
from answer_review.core.models import AIResponse
from answer_review.llm.base_client import BaseLLMClient
from answer_review.llm.config import RetryConfig
from answer_review.llm.exceptions import LLMError, LLMTimeoutError
from answer_review.pipeline.prompt_builder import EvaluationPromptBuilder
from answer_review.pipeline.response_parser import ResponseParser

logger = logging.getLogger(__name__)


class EvaluationPayload(BaseModel):
    """Shape the model is instructed to return: {"ratings": <number>, "feedback": <string>}."""

    ratings: int = Field(validation_alias=AliasChoices("ratings", "rating"))
    feedback: str

    @field_validator("ratings", mode="before")
    @classmethod
    def rating_must_be_whole_number(cls, value: Any) -> int:
        # bool is an int subclass and strings like "7" must not slip through
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"rating must be a number, got {type(value).__name__}")
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"rating must be a whole number, got {value}")
        if not 1 <= value <= 10:
            raise ValueError(f"rating must be between 1 and 10, got {value}")
        return int(value)

    @field_validator("feedback", mode="before")
    @classmethod
    def feedback_must_be_text(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError(f"feedback must be a string, got {type(value).__name__}")
        return value


class EvaluationClient:
    """Builds the evaluation prompt, calls the LLM and returns a validated AIResponse."""

    def __init__(
        self,
        client: BaseLLMClient,
        prompt_builder: Optional[EvaluationPromptBuilder] = None,
        parser: Optional[ResponseParser] = None,
        timeout_seconds: float = 30.0,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Initialize evaluation client.

        Args:
            client: LLM client used for the completion
            prompt_builder: Prompt template source (default templates if None)
            parser: Response parser (default strategies if None)
            timeout_seconds: Upper bound for the whole LLM call, retries included
            retry_config: Retry policy passed to generate_with_retry
        """
        self.client = client
        self.prompt_builder = prompt_builder or EvaluationPromptBuilder()
        self.parser = parser or ResponseParser()
        self.timeout_seconds = timeout_seconds
        self.retry_config = retry_config or RetryConfig()

    async def evaluate(self, question: str, reference_answer: str, user_answer: str) -> AIResponse:
        """
        Grade user_answer against reference_answer for question.

        Returns:
            AIResponse: validated rating and feedback

        Raises:
            EvaluationTimeoutError: LLM did not answer within timeout_seconds
            EvaluationTransportError: LLM provider call failed
            ParseError: no JSON object could be extracted from the response
            ValidationError: JSON object has the wrong fields or types
        """
        messages = self.prompt_builder.build_evaluation_prompt(
            question=question,
            reference_answer=reference_answer,
            user_answer=user_answer,
        )

        try:
            response = await asyncio.wait_for(
                self.client.generate_with_retry(
                    messages,
                    max_retries=self.retry_config.max_retries,
                    initial_delay=self.retry_config.initial_delay_seconds,
                    backoff_multiplier=self.retry_config.backoff_multiplier,
                ),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, LLMTimeoutError) as e:
            raise EvaluationTimeoutError(
                f"No evaluation received within {self.timeout_seconds}s"
            ) from e
        except LLMError as e:
            raise EvaluationTransportError(f"Evaluation request failed: {e}") from e

        logger.debug(f"Raw AI response: {response.content}")

        payload = self.parser.parse(response.content)
        result = self.validate(payload)

        logger.info(f"[Evaluation] rating={result.rating}/10 via {response.model_used or self.client.model}")
        return result

    @staticmethod
    def validate(payload: Any) -> AIResponse:
        """
        Check the parsed record and convert it to an AIResponse.

        Raises:
            ValidationError: payload is not a dict with a numeric rating and text feedback
        """
        if not isinstance(payload, dict):
            raise ValidationError(
                f"Invalid response structure: expected an object, got {type(payload).__name__}",
                payload,
            )

        try:
            parsed = EvaluationPayload.model_validate(payload)
        except PydanticValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            logger.warning(f"[Evaluation] Rejected payload {payload}: {details}")
            raise ValidationError(f"Invalid response structure: {details}", payload) from e

        return AIResponse(rating=parsed.ratings, feedback=parsed.feedback)
