"""
Factory for creating LLM clients based on task.
"""

import logging
import os
from pathlib import Path

from answer_review.llm.anthropic_client import AnthropicClient
from answer_review.llm.base_client import BaseLLMClient
from answer_review.llm.config import DEFAULT_MODEL_CONFIG_PATH, LLMConfig, load_model_config
from answer_review.llm.exceptions import LLMConfigError
from answer_review.llm.openai_client import DEFAULT_BASE_URL, OpenAICompatibleClient

logger = logging.getLogger(__name__)

# Default endpoints for the OpenAI-compatible providers
OPENAI_COMPATIBLE_PROVIDERS = {
    "openai": DEFAULT_BASE_URL,
    "moonshot": "https://api.moonshot.ai/v1",
}


class LLMClientFactory:
    """Factory for creating appropriate LLM client based on task."""

    @staticmethod
    def create_client(
        task: str = "answer_evaluation",
        config_path: str | Path = DEFAULT_MODEL_CONFIG_PATH,
        config: LLMConfig | None = None,
    ) -> BaseLLMClient:
        """
        Create LLM client for specified task.

        Args:
            task: Task name in the models section
            config_path: Path to model configuration file
            config: Already loaded configuration (skips loading config_path)

        Returns:
            BaseLLMClient: Configured client for the task

        Raises:
            LLMConfigError: Invalid configuration or missing API key
        """
        if config is None:
            config = load_model_config(config_path)

        if task not in config.models:
            raise LLMConfigError(f"Task '{task}' not found in model configuration")

        model_config = config.models[task]

        api_key = os.getenv(model_config.api_key_env)
        if not api_key:
            raise LLMConfigError(
                f"API key not found: {model_config.api_key_env}. "
                f"Set environment variable for {task}."
            )

        provider_settings = config.provider_settings.get(model_config.provider)

        if model_config.provider in OPENAI_COMPATIBLE_PROVIDERS:
            base_url = OPENAI_COMPATIBLE_PROVIDERS[model_config.provider]
            if provider_settings and provider_settings.base_url:
                base_url = provider_settings.base_url
            client = OpenAICompatibleClient(
                api_key=api_key,
                model=model_config.model,
                temperature=model_config.temperature,
                max_tokens=model_config.max_tokens,
                timeout=model_config.timeout_seconds,
                base_url=base_url,
            )

        elif model_config.provider == "anthropic":
            client = AnthropicClient(
                api_key=api_key,
                model=model_config.model,
                temperature=model_config.temperature,
                max_tokens=model_config.max_tokens,
                timeout=model_config.timeout_seconds,
            )

        else:
            raise LLMConfigError(
                f"Unsupported provider: {model_config.provider}. "
                f"Supported providers: anthropic, {', '.join(OPENAI_COMPATIBLE_PROVIDERS)}"
            )

        logger.info(
            f"Created {model_config.provider} client for {task}: {model_config.model} "
            f"(temp={model_config.temperature}, max_tokens={model_config.max_tokens})"
        )

        return client
