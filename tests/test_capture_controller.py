"""
Tests for SpeechCaptureController (speech engine scripted, LLM mocked).
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from answer_review.capture.controller import SpeechCaptureController
from answer_review.capture.speech_engine import ScriptedSpeechEngine
from answer_review.core.errors import (
    CaptureError,
    InvalidTransitionError,
    MissingEvaluationError,
    ParseError,
    PersistenceError,
)
from answer_review.core.models import AIResponse, SaveOutcome, TranscriptSegment
from answer_review.core.state import RecordingState
from answer_review.storage.answer_store import AnswerStore

from conftest import finals


@pytest.fixture
def engine():
    return ScriptedSpeechEngine()


@pytest.fixture
def make_controller(question, engine, evaluator, answer_store, event_bus):
    def _make(**overrides):
        params = dict(
            question=question,
            user_id="user-1",
            interview_id="iv-1",
            engine=engine,
            evaluator=evaluator,
            answer_store=answer_store,
            event_bus=event_bus,
            restart_delay_seconds=0,
        )
        params.update(overrides)
        return SpeechCaptureController(**params)

    return _make


async def record(controller, engine, *texts):
    """Start recording, deliver final segments and stop."""
    await controller.toggle_recording()
    engine.emit(finals(*texts))
    return await controller.toggle_recording()


class TestRecordingLifecycle:
    """Tests for toggle_recording."""

    @pytest.mark.asyncio
    async def test_start_recording(self, make_controller, engine, event_bus):
        controller = make_controller()

        state = await controller.toggle_recording()

        assert state is RecordingState.RECORDING
        assert engine.is_listening
        assert controller.user_answer == ""
        assert event_bus.types == ["CaptureStarted"]

    @pytest.mark.asyncio
    async def test_transcript_updates_while_recording(self, make_controller, engine):
        controller = make_controller()
        await controller.toggle_recording()

        engine.emit([TranscriptSegment(text="I would", is_final=False)])
        assert controller.user_answer == ""
        assert controller.interim_text == "I would"

        engine.emit(finals("I would use a hash map") + [TranscriptSegment(text="for", is_final=False)])
        assert controller.user_answer == "I would use a hash map"
        assert controller.interim_text == "for"

    @pytest.mark.asyncio
    async def test_stop_evaluates_final_answer(self, make_controller, engine, evaluator, event_bus, question):
        controller = make_controller()

        state = await record(controller, engine, "It maps keys", "to values.")

        assert state is RecordingState.STOPPED_WITH_RESULT
        assert not engine.is_listening
        assert controller.ai_response == AIResponse(rating=7, feedback="Good")
        assert controller.interim_text == ""
        evaluator.evaluate.assert_awaited_once_with(
            question=question.prompt,
            reference_answer=question.reference_answer,
            user_answer="It maps keys to values.",
        )
        assert event_bus.types == [
            "CaptureStarted",
            "CaptureStopped",
            "EvaluationStarted",
            "EvaluationSucceeded",
        ]

    @pytest.mark.asyncio
    async def test_segments_after_stop_are_ignored(self, make_controller, engine):
        controller = make_controller()
        await record(controller, engine, "final answer")

        controller._on_segments(finals("late words"))

        assert controller.user_answer == "final answer"

    @pytest.mark.asyncio
    async def test_empty_answer_is_still_evaluated(self, make_controller, evaluator):
        controller = make_controller()

        await controller.toggle_recording()
        await controller.toggle_recording()

        assert evaluator.evaluate.await_args.kwargs["user_answer"] == ""

    @pytest.mark.asyncio
    async def test_evaluation_failure(self, make_controller, engine, evaluator, event_bus):
        evaluator.evaluate.side_effect = ParseError("not json at all", [("direct", "bad")])
        controller = make_controller()

        with pytest.raises(ParseError):
            await record(controller, engine, "some answer")

        assert controller.state is RecordingState.STOPPED_NO_RESULT
        assert controller.ai_response is None
        assert controller.user_answer == "some answer"
        assert event_bus.types[-1] == "EvaluationFailed"
        assert event_bus.events[-1].description == "Failed to generate feedback. Please try again."

    @pytest.mark.asyncio
    async def test_record_again_after_failure(self, make_controller, engine, evaluator):
        evaluator.evaluate.side_effect = [ParseError("x", []), AIResponse(rating=5, feedback="OK")]
        controller = make_controller()

        with pytest.raises(ParseError):
            await record(controller, engine, "first try")
        state = await record(controller, engine, "second try")

        assert state is RecordingState.STOPPED_WITH_RESULT
        assert controller.user_answer == "second try"
        assert controller.ai_response.rating == 5

    @pytest.mark.asyncio
    async def test_new_recording_clears_previous_result(self, make_controller, engine):
        controller = make_controller()
        await record(controller, engine, "old answer")

        await controller.toggle_recording()

        assert controller.state is RecordingState.RECORDING
        assert controller.user_answer == ""
        assert controller.ai_response is None


class TestEvaluationInProgress:
    """Operations issued while an evaluation is pending."""

    @pytest.mark.asyncio
    async def test_operations_rejected_while_evaluating(self, make_controller, engine, evaluator, answer_store):
        release = asyncio.Event()

        async def slow_evaluate(**kwargs):
            await release.wait()
            return AIResponse(rating=6, feedback="Fine")

        evaluator.evaluate.side_effect = slow_evaluate
        answer_store.save = AsyncMock()
        controller = make_controller()

        await controller.toggle_recording()
        engine.emit(finals("answer"))
        stopping = asyncio.create_task(controller.toggle_recording())
        await asyncio.sleep(0)

        assert controller.is_evaluating
        with pytest.raises(InvalidTransitionError):
            await controller.toggle_recording()
        with pytest.raises(InvalidTransitionError):
            await controller.reset_for_new_answer()
        with pytest.raises(MissingEvaluationError):
            await controller.save()
        assert engine.start_count == 1
        answer_store.save.assert_not_awaited()

        release.set()
        assert await stopping is RecordingState.STOPPED_WITH_RESULT
        assert evaluator.evaluate.await_count == 1

    @pytest.mark.asyncio
    async def test_cancelled_evaluation_leaves_no_result(self, make_controller, engine, evaluator):
        async def hang(**kwargs):
            await asyncio.sleep(10)

        evaluator.evaluate.side_effect = hang
        controller = make_controller()

        await controller.toggle_recording()
        stopping = asyncio.create_task(controller.toggle_recording())
        await asyncio.sleep(0)
        stopping.cancel()

        with pytest.raises(asyncio.CancelledError):
            await stopping
        assert controller.state is RecordingState.STOPPED_NO_RESULT


class TestResetForNewAnswer:
    """Tests for reset_for_new_answer."""

    @pytest.mark.asyncio
    async def test_reset_while_recording(self, make_controller, engine, event_bus):
        controller = make_controller()
        await controller.toggle_recording()
        engine.emit(finals("abandoned answer"))

        await controller.reset_for_new_answer()

        assert controller.state is RecordingState.IDLE
        assert controller.user_answer == ""
        assert engine.stop_count == 1

        await controller.wait_for_restart()

        assert controller.state is RecordingState.RECORDING
        assert engine.start_count == 2
        assert event_bus.types[-1] == "AnswerReset"
        assert event_bus.events[-1].title == "Recording new answer"

    @pytest.mark.asyncio
    async def test_reset_clears_result_immediately(self, make_controller, engine):
        controller = make_controller(restart_delay_seconds=10)
        await record(controller, engine, "graded answer")

        await controller.reset_for_new_answer()

        assert controller.ai_response is None
        assert controller.user_answer == ""
        assert controller.restart_pending
        await controller.close()

    @pytest.mark.asyncio
    async def test_toggle_cancels_pending_restart(self, make_controller, engine):
        controller = make_controller(restart_delay_seconds=10)
        await record(controller, engine, "graded answer")
        await controller.reset_for_new_answer()

        await controller.toggle_recording()

        assert controller.state is RecordingState.RECORDING
        assert not controller.restart_pending
        assert engine.start_count == 2

    @pytest.mark.asyncio
    async def test_restart_failure_is_reported(self, make_controller, engine, event_bus):
        controller = make_controller()
        await record(controller, engine, "graded answer")
        engine.fail_on_start = True

        await controller.reset_for_new_answer()
        await controller.wait_for_restart()

        assert controller.state is RecordingState.IDLE
        assert event_bus.types[-1] == "CaptureFailed"

    @pytest.mark.asyncio
    async def test_stop_failure_during_reset(self, make_controller, engine):
        controller = make_controller()
        await controller.toggle_recording()
        engine.fail_on_stop = True

        with pytest.raises(CaptureError):
            await controller.reset_for_new_answer()

        assert controller.state is RecordingState.IDLE
        assert not controller.restart_pending


class TestSave:
    """Tests for save."""

    @pytest.mark.asyncio
    async def test_save_without_result_is_rejected(self, make_controller, event_bus):
        store = AsyncMock(spec=AnswerStore)
        controller = make_controller(answer_store=store)

        with pytest.raises(MissingEvaluationError) as exc_info:
            await controller.save()

        assert str(exc_info.value) == "No feedback available to save"
        assert event_bus.types == ["SaveRejected"]
        store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_after_failed_evaluation_is_rejected(self, make_controller, engine, evaluator):
        evaluator.evaluate.side_effect = ParseError("x", [])
        controller = make_controller()
        with pytest.raises(ParseError):
            await record(controller, engine, "answer")

        with pytest.raises(MissingEvaluationError):
            await controller.save()

    @pytest.mark.asyncio
    async def test_save_success(self, make_controller, engine, event_bus, document_store):
        controller = make_controller()
        await record(controller, engine, "It maps keys to values.")

        outcome = await controller.save()

        assert outcome is SaveOutcome.SAVED
        assert controller.state is RecordingState.IDLE
        assert controller.user_answer == ""
        assert controller.ai_response is None
        assert event_bus.types[-1] == "AnswerSaved"
        saved = await document_store.find("user_answers", controller.key.as_filters())
        assert saved[0]["user_answer"] == "It maps keys to values."
        assert saved[0]["rating"] == 7
        assert saved[0]["question_text"] == "What is a hash map?"

    @pytest.mark.asyncio
    async def test_second_save_is_already_answered(self, make_controller, engine, event_bus, document_store):
        controller = make_controller()
        await record(controller, engine, "first answer")
        await controller.save()
        await record(controller, engine, "second answer")

        outcome = await controller.save()

        assert outcome is SaveOutcome.ALREADY_ANSWERED
        assert document_store.count("user_answers") == 1
        assert event_bus.types[-1] == "AlreadyAnswered"
        assert controller.state is RecordingState.STOPPED_WITH_RESULT
        assert controller.user_answer == "second answer"

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_result(self, make_controller, engine, event_bus):
        store = AsyncMock(spec=AnswerStore)
        store.save.side_effect = PersistenceError("Failed to insert into 'user_answers': timeout")
        controller = make_controller(answer_store=store)
        await record(controller, engine, "answer worth keeping")

        with pytest.raises(PersistenceError):
            await controller.save()

        assert controller.state is RecordingState.STOPPED_WITH_RESULT
        assert controller.user_answer == "answer worth keeping"
        assert controller.ai_response is not None
        assert event_bus.types[-1] == "SaveFailed"

        store.save.side_effect = None
        store.save.return_value = SaveOutcome.SAVED
        assert await controller.save() is SaveOutcome.SAVED


class TestCaptureFailures:
    """Speech engine errors."""

    @pytest.mark.asyncio
    async def test_start_failure(self, make_controller, event_bus):
        controller = make_controller(engine=ScriptedSpeechEngine(fail_on_start=True))

        with pytest.raises(CaptureError):
            await controller.toggle_recording()

        assert controller.state is RecordingState.IDLE
        assert event_bus.types == ["CaptureFailed"]

    @pytest.mark.asyncio
    async def test_stop_failure_skips_evaluation(self, make_controller, engine, evaluator, event_bus):
        controller = make_controller()
        await controller.toggle_recording()
        engine.fail_on_stop = True

        with pytest.raises(CaptureError):
            await controller.toggle_recording()

        assert controller.state is RecordingState.IDLE
        evaluator.evaluate.assert_not_awaited()
        assert event_bus.types[-1] == "CaptureFailed"

    @pytest.mark.asyncio
    async def test_close_releases_engine(self, make_controller, engine):
        controller = make_controller()
        await controller.toggle_recording()

        await controller.close()

        assert not engine.is_listening


class TestScriptedSpeechEngine:
    """Tests for the scripted engine used by the CLI."""

    @pytest.mark.asyncio
    async def test_from_text_replays_whole_answer(self, make_controller):
        engine = ScriptedSpeechEngine.from_text("A hash map stores pairs. Lookups are fast!")
        controller = make_controller(engine=engine)

        await controller.toggle_recording()
        await engine.replay()

        assert controller.user_answer == "A hash map stores pairs. Lookups are fast!"

    def test_from_text_alternates_interim_and_final(self):
        engine = ScriptedSpeechEngine.from_text("One. Two.")

        assert [[s.is_final for s in snapshot] for snapshot in engine.script] == [
            [False],
            [True],
            [True, False],
            [True, True],
        ]

    @pytest.mark.asyncio
    async def test_double_start_is_rejected(self):
        engine = ScriptedSpeechEngine()
        await engine.start(lambda segments: None)

        with pytest.raises(CaptureError):
            await engine.start(lambda segments: None)


class GatedStartEngine(ScriptedSpeechEngine):
    """Engine whose start() blocks until the gate is opened."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self.gate.set()
        self.starting = False

    async def start(self, on_segments):
        self.starting = True
        try:
            await self.gate.wait()
        finally:
            self.starting = False
        await super().start(on_segments)


class FlushOnStopEngine(ScriptedSpeechEngine):
    """Engine that finalizes pending speech while stopping."""

    def __init__(self, final_texts):
        super().__init__()
        self.final_texts = final_texts

    async def stop(self):
        await asyncio.sleep(0)
        self.emit(finals(*self.final_texts))
        await super().stop()


async def wait_until(predicate, attempts=100):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


class TestEngineStartInProgress:
    """Operations issued while engine.start() has not returned yet."""

    @pytest.mark.asyncio
    async def test_toggle_during_delayed_restart_stops_after_start(self, make_controller, evaluator):
        engine = GatedStartEngine()
        controller = make_controller(engine=engine)
        await record(controller, engine, "first answer")

        engine.gate.clear()
        await controller.reset_for_new_answer()
        await wait_until(lambda: engine.starting)

        toggling = asyncio.create_task(controller.toggle_recording())
        await asyncio.sleep(0)
        assert not toggling.done()

        engine.gate.set()
        state = await toggling

        assert state is RecordingState.STOPPED_WITH_RESULT
        assert not engine.is_listening
        assert engine.start_count == 2
        assert engine.stop_count == 2
        assert evaluator.evaluate.await_count == 2

        assert await controller.toggle_recording() is RecordingState.RECORDING
        assert engine.is_listening

    @pytest.mark.asyncio
    async def test_concurrent_toggles_during_start(self, make_controller):
        engine = GatedStartEngine()
        controller = make_controller(engine=engine)
        engine.gate.clear()

        starting = asyncio.create_task(controller.toggle_recording())
        await wait_until(lambda: engine.starting)
        stopping = asyncio.create_task(controller.toggle_recording())
        await asyncio.sleep(0)
        engine.gate.set()

        assert await starting is RecordingState.RECORDING
        assert await stopping is RecordingState.STOPPED_WITH_RESULT
        assert not engine.is_listening

    @pytest.mark.asyncio
    async def test_close_cancels_restart_inside_start(self, make_controller, event_bus):
        engine = GatedStartEngine()
        controller = make_controller(engine=engine)
        await record(controller, engine, "first answer")

        engine.gate.clear()
        await controller.reset_for_new_answer()
        await wait_until(lambda: engine.starting)

        await controller.close()

        assert controller.state is RecordingState.IDLE
        assert not engine.is_listening
        assert not controller.restart_pending
        assert "AnswerReset" not in event_bus.types
        controller._on_segments(finals("stray words"))
        assert controller.user_answer == ""


class TestStopOrdering:
    """Segments finalized by the engine while it stops."""

    @pytest.mark.asyncio
    async def test_segments_delivered_during_stop_are_evaluated(self, make_controller, evaluator):
        engine = FlushOnStopEngine(["It maps keys", "to values."])
        controller = make_controller(engine=engine)

        await controller.toggle_recording()
        engine.emit(
            [
                TranscriptSegment(text="It maps keys", is_final=True),
                TranscriptSegment(text="to val", is_final=False),
            ]
        )
        assert controller.user_answer == "It maps keys"

        await controller.toggle_recording()

        assert evaluator.evaluate.await_args.kwargs["user_answer"] == "It maps keys to values."
        assert controller.user_answer == "It maps keys to values."
        assert controller.state is RecordingState.STOPPED_WITH_RESULT
