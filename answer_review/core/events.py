"""
Typed notification events emitted by the capture controller.

Presentation layers subscribe to the EventBus instead of the core showing
notifications itself.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of pipeline events."""

    CAPTURE_STARTED = "capture_started"
    CAPTURE_STOPPED = "capture_stopped"
    CAPTURE_FAILED = "capture_failed"
    EVALUATION_STARTED = "evaluation_started"
    EVALUATION_SUCCEEDED = "evaluation_succeeded"
    EVALUATION_FAILED = "evaluation_failed"
    ANSWER_RESET = "answer_reset"
    SAVE_REJECTED = "save_rejected"
    ALREADY_ANSWERED = "already_answered"
    ANSWER_SAVED = "answer_saved"
    SAVE_FAILED = "save_failed"


class NotificationLevel(str, Enum):
    """How a presentation layer should render the event."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class PipelineEvent:
    """Base class for all pipeline events."""

    event_type: EventType
    level: NotificationLevel
    title: str
    description: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class CaptureStarted(PipelineEvent):
    def __init__(self):
        super().__init__(
            event_type=EventType.CAPTURE_STARTED,
            level=NotificationLevel.INFO,
            title="Recording started",
            description="Speak clearly into your microphone",
        )


class CaptureStopped(PipelineEvent):
    def __init__(self, user_answer: str):
        super().__init__(
            event_type=EventType.CAPTURE_STOPPED,
            level=NotificationLevel.INFO,
            title="Recording stopped",
            description="Generating feedback for your answer",
            data={"answer_length": len(user_answer)},
        )


class CaptureFailed(PipelineEvent):
    def __init__(self, error: Exception):
        super().__init__(
            event_type=EventType.CAPTURE_FAILED,
            level=NotificationLevel.ERROR,
            title="Error",
            description="Could not access the microphone. Please try again.",
            data={"error_type": type(error).__name__, "error_message": str(error)},
        )


class EvaluationStarted(PipelineEvent):
    def __init__(self):
        super().__init__(
            event_type=EventType.EVALUATION_STARTED,
            level=NotificationLevel.INFO,
            title="Evaluating",
            description="Comparing your answer with the expected answer",
        )


class EvaluationSucceeded(PipelineEvent):
    def __init__(self, rating: int, feedback: str):
        super().__init__(
            event_type=EventType.EVALUATION_SUCCEEDED,
            level=NotificationLevel.SUCCESS,
            title="Feedback ready",
            description=f"Rating: {rating}/10",
            data={"rating": rating, "feedback": feedback},
        )


class EvaluationFailed(PipelineEvent):
    def __init__(self, error: Exception):
        super().__init__(
            event_type=EventType.EVALUATION_FAILED,
            level=NotificationLevel.ERROR,
            title="Error",
            description="Failed to generate feedback. Please try again.",
            data={"error_type": type(error).__name__, "error_message": str(error)},
        )


class AnswerReset(PipelineEvent):
    def __init__(self):
        super().__init__(
            event_type=EventType.ANSWER_RESET,
            level=NotificationLevel.INFO,
            title="Recording new answer",
            description="Previous answer has been cleared",
        )


class SaveRejected(PipelineEvent):
    def __init__(self):
        super().__init__(
            event_type=EventType.SAVE_REJECTED,
            level=NotificationLevel.ERROR,
            title="Error",
            description="No feedback available to save",
        )


class AlreadyAnswered(PipelineEvent):
    def __init__(self):
        super().__init__(
            event_type=EventType.ALREADY_ANSWERED,
            level=NotificationLevel.INFO,
            title="Already Answered",
            description="You have already answered this question",
        )


class AnswerSaved(PipelineEvent):
    def __init__(self, rating: int):
        super().__init__(
            event_type=EventType.ANSWER_SAVED,
            level=NotificationLevel.SUCCESS,
            title="Saved",
            description="Your answer has been saved successfully",
            data={"rating": rating},
        )


class SaveFailed(PipelineEvent):
    def __init__(self, error: Exception):
        super().__init__(
            event_type=EventType.SAVE_FAILED,
            level=NotificationLevel.ERROR,
            title="Error",
            description="An error occurred while saving your answer.",
            data={"error_type": type(error).__name__, "error_message": str(error)},
        )


EventHandler = Callable[[PipelineEvent], None]


class EventBus:
    """Synchronous publish/subscribe hub for pipeline events."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type.value}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from specific event type."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            logger.debug(f"Unsubscribed handler from {event_type.value}")
        else:
            logger.warning(f"Handler not found for {event_type.value}")

    def emit(self, event: PipelineEvent) -> None:
        """
        Emit an event to all subscribers.

        A failing handler is logged and does not stop delivery to the others.
        """
        logger.debug(f"Emitting event: {event.event_type.value}")

        for handler in self._handlers.get(event.event_type, []) + self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type.value}: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO, name: Optional[str] = None):
        self.logger = logging.getLogger(name or "answer_review.events")
        self.log_level = log_level

    def handle_event(self, event: PipelineEvent) -> None:
        self.logger.log(
            self.log_level,
            f"Event: {event.event_type.value} [{event.level.value}] "
            f"{event.title} - {event.description} | Data: {event.data}",
        )
