"""
Configuration loader for LLM models.

Loads and validates model_config.yaml using Pydantic models.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from answer_review.llm.exceptions import LLMConfigError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_CONFIG_PATH = Path(__file__).parent.parent / "config" / "model_config.yaml"


class ModelConfig(BaseModel):
    """Configuration for a single LLM model."""

    provider: str
    model: str
    api_key_env: str
    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(gt=0)
    timeout_seconds: int = Field(gt=0)


class RetryConfig(BaseModel):
    """Retry configuration for LLM requests."""

    max_retries: int = Field(default=1, ge=0)
    initial_delay_seconds: float = Field(default=1.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)


class ProviderSettings(BaseModel):
    """Provider-specific settings."""

    base_url: str | None = None


class LLMConfig(BaseModel):
    """Complete LLM configuration."""

    models: dict[str, ModelConfig]
    retry_config: RetryConfig = Field(default_factory=RetryConfig)
    provider_settings: dict[str, ProviderSettings] = Field(default_factory=dict)


def load_model_config(config_path: str | Path = DEFAULT_MODEL_CONFIG_PATH) -> LLMConfig:
    """
    Load and validate model configuration from YAML file.

    Args:
        config_path: Path to model_config.yaml

    Returns:
        LLMConfig: Validated configuration

    Raises:
        LLMConfigError: Failed to load or validate configuration
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise LLMConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, encoding="utf-8") as f:
            config_data = yaml.safe_load(f)

        config = LLMConfig(**config_data)

        logger.info(
            f"Loaded LLM config with {len(config.models)} model configurations: "
            f"{', '.join(config.models.keys())}"
        )

        return config

    except yaml.YAMLError as e:
        raise LLMConfigError(f"Failed to parse YAML: {e}") from e
    except Exception as e:
        raise LLMConfigError(f"Failed to load config from {config_path}: {e}") from e
