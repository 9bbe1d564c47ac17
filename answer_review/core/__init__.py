"""
Core data structures for the answer evaluation pipeline.
"""

from answer_review.core.errors import (
    AnswerReviewError,
    CaptureError,
    ConfigError,
    EvaluationError,
    EvaluationTimeoutError,
    EvaluationTransportError,
    InvalidTransitionError,
    MissingEvaluationError,
    ParseError,
    PersistenceError,
    ValidationError,
)
from answer_review.core.events import EventBus, EventLogger, EventType, NotificationLevel, PipelineEvent
from answer_review.core.models import (
    AIResponse,
    AnswerKey,
    AnswerRecord,
    Question,
    SaveOutcome,
    TranscriptSegment,
)
from answer_review.core.state import RecordingState, RecordingStateMachine, Transition

__all__ = [
    # Models
    "Question",
    "TranscriptSegment",
    "AIResponse",
    "AnswerKey",
    "AnswerRecord",
    "SaveOutcome",
    # State
    "RecordingState",
    "RecordingStateMachine",
    "Transition",
    # Events
    "EventBus",
    "EventLogger",
    "EventType",
    "NotificationLevel",
    "PipelineEvent",
    # Errors
    "AnswerReviewError",
    "ConfigError",
    "CaptureError",
    "EvaluationError",
    "ParseError",
    "ValidationError",
    "EvaluationTransportError",
    "EvaluationTimeoutError",
    "PersistenceError",
    "InvalidTransitionError",
    "MissingEvaluationError",
]
