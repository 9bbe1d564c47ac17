"""
Recording lifecycle for one interview question.

The controller owns the speech engine, keeps the aggregated answer up to
date while recording, evaluates the final answer once capture has stopped and
saves the evaluated answer on request. Every outcome is published on the
event bus.
"""

import asyncio
import logging
from typing import List, Optional

from answer_review.capture.speech_engine import SpeechEngine
from answer_review.core.errors import (
    CaptureError,
    InvalidTransitionError,
    MissingEvaluationError,
    PersistenceError,
)
from answer_review.core.events import (
    AlreadyAnswered,
    AnswerReset,
    AnswerSaved,
    CaptureFailed,
    CaptureStarted,
    CaptureStopped,
    EvaluationFailed,
    EvaluationStarted,
    EvaluationSucceeded,
    EventBus,
    PipelineEvent,
    SaveFailed,
    SaveRejected,
)
from answer_review.core.models import (
    AIResponse,
    AnswerKey,
    AnswerRecord,
    Question,
    SaveOutcome,
    TranscriptSegment,
)
from answer_review.core.state import RecordingState, RecordingStateMachine, Transition
from answer_review.pipeline.evaluation_client import EvaluationClient
from answer_review.pipeline.transcript import aggregate_transcript, latest_interim_text
from answer_review.storage.answer_store import AnswerStore

logger = logging.getLogger(__name__)

DEFAULT_RESTART_DELAY_SECONDS = 0.3


class SpeechCaptureController:
    """
    Drives capture -> evaluation -> save for a single question.

    Observable state: state, user_answer, interim_text, ai_response.
    """

    def __init__(
        self,
        question: Question,
        user_id: str,
        interview_id: str,
        engine: SpeechEngine,
        evaluator: EvaluationClient,
        answer_store: AnswerStore,
        event_bus: Optional[EventBus] = None,
        restart_delay_seconds: float = DEFAULT_RESTART_DELAY_SECONDS,
    ):
        """
        Args:
            question: Question being answered
            user_id: Authenticated user
            interview_id: Interview session the answer belongs to
            engine: Speech engine, exclusively owned by this controller
            evaluator: Client grading the answer
            answer_store: Write-once persistence
            event_bus: Bus receiving notifications (a private one if None)
            restart_delay_seconds: Pause between stopping and restarting the
                engine on reset, so the audio device is released
        """
        self.question = question
        self.key = AnswerKey(
            user_id=user_id,
            question_text=question.prompt,
            interview_id=interview_id,
        )
        self.engine = engine
        self.evaluator = evaluator
        self.answer_store = answer_store
        self.event_bus = event_bus or EventBus()
        self.restart_delay_seconds = restart_delay_seconds

        self._machine = RecordingStateMachine()
        self._segments: List[TranscriptSegment] = []
        self._user_answer = ""
        self._ai_response: Optional[AIResponse] = None
        self._accepting_segments = False
        self._restart_task: Optional[asyncio.Task] = None
        # Cleared while engine.start() is in flight
        self._start_finished = asyncio.Event()
        self._start_finished.set()

    # Observable state

    @property
    def state(self) -> RecordingState:
        return self._machine.state

    @property
    def user_answer(self) -> str:
        return self._user_answer

    @property
    def interim_text(self) -> str:
        if self.state is not RecordingState.RECORDING:
            return ""
        return latest_interim_text(self._segments)

    @property
    def ai_response(self) -> Optional[AIResponse]:
        return self._ai_response

    @property
    def is_evaluating(self) -> bool:
        return self.state is RecordingState.EVALUATING

    @property
    def restart_pending(self) -> bool:
        return self._restart_task is not None and not self._restart_task.done()

    # User-triggered operations

    async def toggle_recording(self) -> RecordingState:
        """
        Start recording, or stop and evaluate if already recording.

        Returns:
            The state after the operation

        Raises:
            InvalidTransitionError: an evaluation is in progress
            CaptureError: speech engine failed; state is IDLE
            EvaluationError: evaluation failed; state is STOPPED_NO_RESULT

        A start still in progress (including a delayed restart) is awaited
        first, so a stop always follows a completed engine.start().
        """
        await self._settle_pending_start()

        if self.is_evaluating:
            raise InvalidTransitionError("Cannot toggle recording while an evaluation is in progress")

        if self.state is RecordingState.RECORDING:
            await self._stop_and_evaluate()
        else:
            await self._start_capture(CaptureStarted())

        return self.state

    async def reset_for_new_answer(self) -> None:
        """
        Discard the current answer and start a fresh recording after the grace delay.

        user_answer and ai_response are cleared before this returns; the restart
        runs in a background task (see wait_for_restart).

        Raises:
            InvalidTransitionError: an evaluation is in progress
            CaptureError: the engine could not be stopped; no restart is scheduled
        """
        await self._settle_pending_start()

        if self.is_evaluating:
            raise InvalidTransitionError("Cannot record a new answer while an evaluation is in progress")

        was_recording = self.state is RecordingState.RECORDING

        self._accepting_segments = False
        self._clear_answer()
        self._machine.apply(Transition.RESET)

        if was_recording:
            try:
                await self.engine.stop()
            except CaptureError as e:
                logger.error(f"[Capture] Failed to stop engine for reset: {e}")
                self._emit(CaptureFailed(e))
                raise

        self._restart_task = asyncio.create_task(self._restart_after_delay())

    async def wait_for_restart(self) -> None:
        """Wait for a restart scheduled by reset_for_new_answer, if any."""
        task = self._restart_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def save(self) -> SaveOutcome:
        """
        Persist the evaluated answer once per user, question and interview.

        Raises:
            MissingEvaluationError: no evaluation result; the store is not contacted
            PersistenceError: store failure; answer and evaluation are kept for a retry
        """
        if self.state is not RecordingState.STOPPED_WITH_RESULT or self._ai_response is None:
            self._emit(SaveRejected())
            raise MissingEvaluationError("No feedback available to save")

        ai_response = self._ai_response
        record = AnswerRecord.from_evaluation(self.key, self.question, self._user_answer, ai_response)

        try:
            outcome = await self.answer_store.save(self.key, record)
        except PersistenceError as e:
            logger.error(f"[Save] {e}")
            self._emit(SaveFailed(e))
            raise

        if outcome is SaveOutcome.ALREADY_ANSWERED:
            self._emit(AlreadyAnswered())
            return outcome

        self._emit(AnswerSaved(ai_response.rating))

        # A new recording may have started while the insert was in flight
        if self.state is RecordingState.STOPPED_WITH_RESULT:
            self._clear_answer()
            self._machine.apply(Transition.SAVED)

        return outcome

    async def close(self) -> None:
        """Cancel a pending restart and release the microphone."""
        await self._cancel_pending_restart()
        await self._start_finished.wait()
        if self.engine.is_listening:
            self._accepting_segments = False
            await self.engine.stop()

    # Internals

    def _on_segments(self, segments: List[TranscriptSegment]) -> None:
        if not self._accepting_segments:
            logger.debug(f"Ignoring {len(segments)} segments received outside a recording")
            return
        self._segments = list(segments)
        self._user_answer = aggregate_transcript(self._segments)

    async def _start_capture(self, event: PipelineEvent) -> None:
        self._clear_answer()
        self._machine.apply(Transition.START)
        self._accepting_segments = True
        self._start_finished.clear()

        try:
            await self.engine.start(self._on_segments)
        except CaptureError as e:
            self._accepting_segments = False
            self._machine.apply(Transition.CAPTURE_FAILED)
            logger.error(f"[Capture] Failed to start: {e}")
            self._emit(CaptureFailed(e))
            raise
        except asyncio.CancelledError:
            self._accepting_segments = False
            self._machine.apply(Transition.RESET)
            logger.info("[Capture] Start cancelled")
            await self._release_engine()
            raise
        finally:
            self._start_finished.set()

        logger.info(f"[Capture] Recording answer to '{self.question.prompt[:60]}'")
        self._emit(event)

    async def _stop_and_evaluate(self) -> None:
        # Enter EVALUATING before the first await so concurrent toggles are rejected
        self._machine.apply(Transition.STOP)

        try:
            await self.engine.stop()
        except CaptureError as e:
            self._accepting_segments = False
            self._machine.apply(Transition.CAPTURE_FAILED)
            logger.error(f"[Capture] Failed to stop: {e}")
            self._emit(CaptureFailed(e))
            raise

        self._accepting_segments = False
        answer = self._user_answer
        self._emit(CaptureStopped(answer))

        if not answer:
            logger.warning("[Capture] Evaluating an empty answer")

        self._emit(EvaluationStarted())
        try:
            result = await self.evaluator.evaluate(
                question=self.question.prompt,
                reference_answer=self.question.reference_answer,
                user_answer=answer,
            )
        except asyncio.CancelledError:
            self._machine.apply(Transition.EVALUATION_FAILED)
            raise
        except Exception as e:
            self._machine.apply(Transition.EVALUATION_FAILED)
            logger.error(f"[Evaluation] Failed: {e}")
            self._emit(EvaluationFailed(e))
            raise

        self._ai_response = result
        self._machine.apply(Transition.EVALUATION_SUCCEEDED)
        self._emit(EvaluationSucceeded(result.rating, result.feedback))

    async def _restart_after_delay(self) -> None:
        await asyncio.sleep(self.restart_delay_seconds)

        if self.state is not RecordingState.IDLE:
            logger.debug(f"Skipping restart, state is {self.state.value}")
            return

        try:
            await self._start_capture(AnswerReset())
        except CaptureError:
            # Already logged and published as CaptureFailed
            return

    async def _settle_pending_start(self) -> None:
        # A start in flight has already moved the state to RECORDING
        while not self._start_finished.is_set() or self.restart_pending:
            await self._start_finished.wait()
            await self._cancel_pending_restart()

    async def _cancel_pending_restart(self) -> None:
        task, self._restart_task = self._restart_task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})

    async def _release_engine(self) -> None:
        if not self.engine.is_listening:
            return
        try:
            await self.engine.stop()
        except CaptureError as e:
            logger.error(f"[Capture] Failed to release engine after cancelled start: {e}")
            self._emit(CaptureFailed(e))

    def _clear_answer(self) -> None:
        self._segments = []
        self._user_answer = ""
        self._ai_response = None

    def _emit(self, event: PipelineEvent) -> None:
        self.event_bus.emit(event)
