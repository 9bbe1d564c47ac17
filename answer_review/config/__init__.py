"""Configuration files and loaders."""

from answer_review.config.settings import (
    DEFAULT_PIPELINE_CONFIG_PATH,
    PipelineConfig,
    load_pipeline_config,
)

__all__ = [
    "DEFAULT_PIPELINE_CONFIG_PATH",
    "PipelineConfig",
    "load_pipeline_config",
]
