"""Speech capture: engine interface and recording lifecycle controller."""

from answer_review.capture.controller import SpeechCaptureController
from answer_review.capture.speech_engine import ScriptedSpeechEngine, SpeechEngine

__all__ = ["SpeechCaptureController", "SpeechEngine", "ScriptedSpeechEngine"]
