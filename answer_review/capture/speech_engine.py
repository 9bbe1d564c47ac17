"""
Speech engine interface consumed by the capture controller.

Engines push the complete, growing list of segments on every update. A
segment may first arrive as interim and later be replaced by its final form.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from answer_review.core.errors import CaptureError
from answer_review.core.models import TranscriptSegment

logger = logging.getLogger(__name__)

SegmentCallback = Callable[[List[TranscriptSegment]], None]

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


class SpeechEngine(ABC):
    """Abstract speech-to-text engine owning the microphone."""

    @abstractmethod
    async def start(self, on_segments: SegmentCallback) -> None:
        """
        Begin listening. Returns once the microphone is open.

        Raises:
            CaptureError: engine could not start
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """
        Stop listening. Final segments are delivered before this returns.

        Raises:
            CaptureError: engine could not stop cleanly
        """
        pass

    @property
    @abstractmethod
    def is_listening(self) -> bool:
        pass


class ScriptedSpeechEngine(SpeechEngine):
    """
    Engine that replays prepared segment snapshots instead of a microphone.

    Used by the CLI to feed a typed answer through the same pipeline as a
    spoken one, and by tests.
    """

    def __init__(
        self,
        script: Optional[Sequence[Sequence[TranscriptSegment]]] = None,
        fail_on_start: bool = False,
        fail_on_stop: bool = False,
    ):
        """
        Args:
            script: Snapshots delivered in order by replay()
            fail_on_start: Raise CaptureError from start()
            fail_on_stop: Raise CaptureError from stop()
        """
        self.script = [list(snapshot) for snapshot in (script or [])]
        self.fail_on_start = fail_on_start
        self.fail_on_stop = fail_on_stop
        self.start_count = 0
        self.stop_count = 0
        self._callback: Optional[SegmentCallback] = None
        self._segments: List[TranscriptSegment] = []

    @classmethod
    def from_text(cls, text: str) -> "ScriptedSpeechEngine":
        """One interim snapshot per sentence, then the whole answer as final segments."""
        sentences = [part for part in SENTENCE_BOUNDARY.split(text.strip()) if part]
        script: List[List[TranscriptSegment]] = []
        finals: List[TranscriptSegment] = []
        for sentence in sentences:
            script.append(finals + [TranscriptSegment(text=sentence, is_final=False)])
            finals = finals + [TranscriptSegment(text=sentence, is_final=True)]
            script.append(list(finals))
        return cls(script=script)

    @property
    def is_listening(self) -> bool:
        return self._callback is not None

    async def start(self, on_segments: SegmentCallback) -> None:
        if self.fail_on_start:
            raise CaptureError("Microphone unavailable")
        if self._callback is not None:
            raise CaptureError("Speech engine is already listening")
        self.start_count += 1
        self._segments = []
        self._callback = on_segments
        logger.debug("Scripted speech engine started")

    async def stop(self) -> None:
        if self.fail_on_stop:
            self._callback = None
            raise CaptureError("Speech engine did not stop cleanly")
        self.stop_count += 1
        self._callback = None
        logger.debug("Scripted speech engine stopped")

    def emit(self, segments: Sequence[TranscriptSegment]) -> None:
        """Deliver a snapshot of the full segment list to the listener."""
        if self._callback is None:
            logger.debug("Dropping segments, engine is not listening")
            return
        self._segments = list(segments)
        self._callback(list(self._segments))

    async def replay(self) -> None:
        """Deliver every scripted snapshot, yielding to the event loop in between."""
        for snapshot in self.script:
            self.emit(snapshot)
            await asyncio.sleep(0)
