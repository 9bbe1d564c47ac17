"""
Recording lifecycle state machine.

IDLE -> RECORDING -> EVALUATING -> STOPPED_WITH_RESULT | STOPPED_NO_RESULT,
with the stopped states able to start a new recording.
"""

import logging
from enum import Enum

from answer_review.core.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class RecordingState(str, Enum):
    """Lifecycle states of a single answer."""

    IDLE = "idle"
    RECORDING = "recording"
    EVALUATING = "evaluating"
    STOPPED_NO_RESULT = "stopped_no_result"
    STOPPED_WITH_RESULT = "stopped_with_result"


class Transition(str, Enum):
    """Named transitions between recording states."""

    START = "start"
    STOP = "stop"
    EVALUATION_SUCCEEDED = "evaluation_succeeded"
    EVALUATION_FAILED = "evaluation_failed"
    RESET = "reset"
    CAPTURE_FAILED = "capture_failed"
    SAVED = "saved"


_RESETTABLE = (
    RecordingState.IDLE,
    RecordingState.RECORDING,
    RecordingState.STOPPED_NO_RESULT,
    RecordingState.STOPPED_WITH_RESULT,
)

TRANSITIONS: dict[tuple[RecordingState, Transition], RecordingState] = {
    (RecordingState.IDLE, Transition.START): RecordingState.RECORDING,
    (RecordingState.STOPPED_NO_RESULT, Transition.START): RecordingState.RECORDING,
    (RecordingState.STOPPED_WITH_RESULT, Transition.START): RecordingState.RECORDING,
    (RecordingState.RECORDING, Transition.STOP): RecordingState.EVALUATING,
    (RecordingState.EVALUATING, Transition.EVALUATION_SUCCEEDED): RecordingState.STOPPED_WITH_RESULT,
    (RecordingState.EVALUATING, Transition.EVALUATION_FAILED): RecordingState.STOPPED_NO_RESULT,
    (RecordingState.STOPPED_WITH_RESULT, Transition.SAVED): RecordingState.IDLE,
    **{(state, Transition.RESET): RecordingState.IDLE for state in _RESETTABLE},
    **{(state, Transition.CAPTURE_FAILED): RecordingState.IDLE for state in RecordingState},
}


class RecordingStateMachine:
    """Holds the current state and rejects transitions missing from TRANSITIONS."""

    def __init__(self, initial: RecordingState = RecordingState.IDLE):
        self._state = initial

    @property
    def state(self) -> RecordingState:
        return self._state

    def can(self, transition: Transition) -> bool:
        return (self._state, transition) in TRANSITIONS

    def apply(self, transition: Transition) -> RecordingState:
        """
        Move to the next state.

        Raises:
            InvalidTransitionError: transition is not allowed from the current state
        """
        key = (self._state, transition)
        if key not in TRANSITIONS:
            raise InvalidTransitionError(
                f"Cannot {transition.value} while {self._state.value}"
            )
        previous, self._state = self._state, TRANSITIONS[key]
        logger.debug(f"[State] {previous.value} --{transition.value}--> {self._state.value}")
        return self._state
