"""Answer evaluation pipeline: transcript aggregation, prompting, parsing and validation."""

from answer_review.pipeline.evaluation_client import EvaluationClient
from answer_review.pipeline.prompt_builder import EvaluationPromptBuilder
from answer_review.pipeline.response_parser import ResponseParser
from answer_review.pipeline.transcript import aggregate_transcript

__all__ = [
    "EvaluationClient",
    "EvaluationPromptBuilder",
    "ResponseParser",
    "aggregate_transcript",
]
