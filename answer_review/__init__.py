"""
Answer Review: evaluate spoken interview answers with an LLM and save each
result once per user, question and interview.
"""

__version__ = "0.1.0"

from answer_review.capture.controller import SpeechCaptureController
from answer_review.core.models import AIResponse, AnswerRecord, Question, SaveOutcome
from answer_review.core.state import RecordingState

__all__ = [
    "SpeechCaptureController",
    "Question",
    "AIResponse",
    "AnswerRecord",
    "SaveOutcome",
    "RecordingState",
]
