"""
OpenAI-compatible LLM client (OpenAI, Moonshot Kimi and other compatible APIs).
"""

import logging
import time

from openai import APITimeoutError, AsyncOpenAI

from answer_review.llm.base_client import BaseLLMClient, LLMResponse
from answer_review.llm.exceptions import LLMProviderError, LLMTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAICompatibleClient(BaseLLMClient):
    """LLM client for any API speaking the OpenAI chat completions protocol."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: int,
        base_url: str = DEFAULT_BASE_URL,
    ):
        """
        Initialize OpenAI-compatible client.

        Args:
            api_key: Provider API key
            model: Model identifier (e.g., "gpt-4o-mini", "kimi-k2-turbo-preview")
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
            base_url: API base URL
        """
        super().__init__(api_key, model, temperature, max_tokens, timeout)
        self.base_url = base_url
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    async def generate_completion(self, messages: list[dict[str, str]]) -> LLMResponse:
        """
        Generate completion from the chat completions endpoint.

        Args:
            messages: Chat messages in OpenAI format

        Returns:
            LLMResponse: Response with content and metadata

        Raises:
            LLMProviderError: API error or empty response
            LLMTimeoutError: Request timed out
        """
        start_time = time.time()

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except APITimeoutError as e:
            raise LLMTimeoutError(f"API at {self.base_url} timed out after {self.timeout}s") from e
        except Exception as e:
            raise LLMProviderError(f"API error from {self.base_url}: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        content = ""
        if response.choices and response.choices[0].message.content:
            content = response.choices[0].message.content

        if not content:
            logger.warning(f"No content in response from {self.model}")
            raise LLMProviderError(f"{self.model} returned an empty response")

        tokens_used = response.usage.total_tokens if response.usage else 0

        return LLMResponse(
            content=content,
            tokens_used=tokens_used,
            latency_ms=latency_ms,
            model_used=self.model,
        )
