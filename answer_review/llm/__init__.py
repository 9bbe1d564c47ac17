"""LLM client module for answer evaluation."""

from answer_review.llm.base_client import BaseLLMClient, LLMResponse
from answer_review.llm.exceptions import (
    LLMConfigError,
    LLMError,
    LLMProviderError,
    LLMTimeoutError,
)

__all__ = [
    "BaseLLMClient",
    "LLMResponse",
    "LLMError",
    "LLMProviderError",
    "LLMTimeoutError",
    "LLMConfigError",
]
