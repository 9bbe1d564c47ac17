"""
Wiring of the pipeline components from configuration.
"""

import logging
from pathlib import Path
from typing import Optional

from answer_review.capture.controller import SpeechCaptureController
from answer_review.capture.speech_engine import SpeechEngine
from answer_review.config.settings import PipelineConfig
from answer_review.core.events import EventBus
from answer_review.core.models import Question
from answer_review.llm.client_factory import LLMClientFactory
from answer_review.llm.config import DEFAULT_MODEL_CONFIG_PATH, load_model_config
from answer_review.pipeline.evaluation_client import EvaluationClient
from answer_review.pipeline.prompt_builder import DEFAULT_PROMPTS_PATH, EvaluationPromptBuilder
from answer_review.storage.answer_store import AnswerStore
from answer_review.storage.document_store import DocumentStore, SqlDocumentStore

logger = logging.getLogger(__name__)


def build_evaluation_client(
    pipeline_config: PipelineConfig,
    model_config_path: str | Path = DEFAULT_MODEL_CONFIG_PATH,
) -> EvaluationClient:
    """
    Create the evaluation client for the configured model task.

    Raises:
        LLMConfigError: model configuration or API key missing
    """
    llm_config = load_model_config(model_config_path)
    client = LLMClientFactory.create_client(
        task=pipeline_config.evaluation.model_task,
        config=llm_config,
    )
    prompts_path = pipeline_config.evaluation.prompts_path or DEFAULT_PROMPTS_PATH

    return EvaluationClient(
        client=client,
        prompt_builder=EvaluationPromptBuilder(prompts_path),
        timeout_seconds=pipeline_config.evaluation.timeout_seconds,
        retry_config=llm_config.retry_config,
    )


def build_controller(
    question: Question,
    user_id: str,
    interview_id: str,
    engine: SpeechEngine,
    pipeline_config: PipelineConfig,
    evaluator: Optional[EvaluationClient] = None,
    document_store: Optional[DocumentStore] = None,
    event_bus: Optional[EventBus] = None,
    model_config_path: str | Path = DEFAULT_MODEL_CONFIG_PATH,
) -> SpeechCaptureController:
    """
    Create a capture controller for one question.

    evaluator and document_store default to the configured LLM and SQL store.
    """
    if evaluator is None:
        evaluator = build_evaluation_client(pipeline_config, model_config_path)
    if document_store is None:
        document_store = SqlDocumentStore(pipeline_config.storage.database_url)

    logger.debug(f"Building controller for interview {interview_id}, user {user_id}")

    return SpeechCaptureController(
        question=question,
        user_id=user_id,
        interview_id=interview_id,
        engine=engine,
        evaluator=evaluator,
        answer_store=AnswerStore(document_store, collection=pipeline_config.storage.collection),
        event_bus=event_bus,
        restart_delay_seconds=pipeline_config.capture.restart_delay_seconds,
    )
