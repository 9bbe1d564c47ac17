"""
Pipeline configuration.

Loads pipeline_config.yaml into Pydantic models. Every section has defaults so
a missing file yields a working configuration.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from answer_review.core.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent
DEFAULT_PIPELINE_CONFIG_PATH = CONFIG_DIR / "pipeline_config.yaml"


class CaptureSettings(BaseModel):
    restart_delay_seconds: float = Field(default=0.3, ge=0.0)


class EvaluationSettings(BaseModel):
    model_task: str = "answer_evaluation"
    timeout_seconds: float = Field(default=45.0, gt=0.0)
    prompts_path: Optional[str] = None


class StorageSettings(BaseModel):
    database_url: str = "sqlite:///answers.db"
    collection: str = Field(default="user_answers", min_length=1)


class PipelineConfig(BaseModel):
    """Complete pipeline configuration."""

    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    evaluation: EvaluationSettings = Field(default_factory=EvaluationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


def load_pipeline_config(config_path: str | Path = DEFAULT_PIPELINE_CONFIG_PATH) -> PipelineConfig:
    """
    Load and validate pipeline configuration.

    Args:
        config_path: Path to pipeline_config.yaml

    Returns:
        PipelineConfig: Validated configuration (defaults if the file is missing)

    Raises:
        ConfigError: File exists but cannot be parsed or validated
    """
    config_file = Path(config_path)

    if not config_file.exists():
        logger.warning(f"Pipeline config not found: {config_path}, using defaults")
        return PipelineConfig()

    try:
        with open(config_file, encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

        config = PipelineConfig(**config_data)

    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e
    except Exception as e:
        raise ConfigError(f"Failed to load config from {config_path}: {e}") from e

    logger.info(
        f"Loaded pipeline config: restart_delay={config.capture.restart_delay_seconds}s, "
        f"evaluation_timeout={config.evaluation.timeout_seconds}s, "
        f"collection={config.storage.collection}"
    )
    return config
