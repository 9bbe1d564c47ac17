"""
Anthropic (Claude) LLM client implementation.
"""

import logging
import time

from anthropic import APITimeoutError, AsyncAnthropic

from answer_review.llm.base_client import BaseLLMClient, LLMResponse
from answer_review.llm.exceptions import LLMProviderError, LLMTimeoutError

logger = logging.getLogger(__name__)


class AnthropicClient(BaseLLMClient):
    """LLM client for Anthropic Claude API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: int,
    ):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            model: Model identifier (e.g., "claude-sonnet-4-5")
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
        """
        super().__init__(api_key, model, temperature, max_tokens, timeout)
        # Retries are handled by generate_with_retry
        self.client = AsyncAnthropic(api_key=api_key, max_retries=0)

    async def generate_completion(self, messages: list[dict[str, str]]) -> LLMResponse:
        """
        Generate completion from Anthropic API.

        Args:
            messages: Chat messages in OpenAI format

        Returns:
            LLMResponse: Response with the concatenated text blocks

        Raises:
            LLMProviderError: Anthropic API error or empty response
            LLMTimeoutError: Request timed out
        """
        start_time = time.time()

        # Anthropic takes the system prompt as a separate argument
        system_msg = None
        chat_messages = []

        for msg in messages:
            if msg["role"] == "system":
                system_msg = msg["content"]
            else:
                chat_messages.append({"role": msg["role"], "content": msg["content"]})

        kwargs = {
            "model": self.model,
            "messages": chat_messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
        }

        if system_msg:
            kwargs["system"] = system_msg

        try:
            response = await self.client.messages.create(**kwargs)
        except APITimeoutError as e:
            raise LLMTimeoutError(f"Anthropic API timed out after {self.timeout}s") from e
        except Exception as e:
            raise LLMProviderError(f"Anthropic API error: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        content = " ".join(
            block.text for block in response.content if block.type == "text"
        )

        if not content:
            logger.error("No text content in Anthropic response - possible safety filter")
            raise LLMProviderError("Anthropic API returned an empty response")

        tokens_used = 0
        if response.usage is not None:
            tokens_used = response.usage.input_tokens + response.usage.output_tokens

        return LLMResponse(
            content=content,
            tokens_used=tokens_used,
            latency_ms=latency_ms,
            model_used=self.model,
        )
