"""
Shared fixtures for answer_review tests.
"""

from unittest.mock import AsyncMock

import pytest

from answer_review.core.events import EventBus
from answer_review.core.models import AIResponse, Question, TranscriptSegment
from answer_review.llm.base_client import BaseLLMClient, LLMResponse
from answer_review.pipeline.evaluation_client import EvaluationClient
from answer_review.storage.answer_store import AnswerStore
from answer_review.storage.document_store import InMemoryDocumentStore


class StaticLLMClient(BaseLLMClient):
    """LLM client returning canned responses and recording the messages it got."""

    def __init__(self, *contents):
        super().__init__(api_key="test-key", model="fake-model", temperature=0.0, max_tokens=100, timeout=5)
        self.contents = list(contents)
        self.received = []

    async def generate_completion(self, messages):
        self.received.append(messages)
        content = self.contents.pop(0) if len(self.contents) > 1 else self.contents[0]
        return LLMResponse(content=content, tokens_used=10, model_used=self.model)


class RecordingBus(EventBus):
    """EventBus that keeps every emitted event."""

    def __init__(self):
        super().__init__()
        self.events = []
        self.subscribe_all(self.events.append)

    @property
    def types(self):
        return [type(event).__name__ for event in self.events]


@pytest.fixture
def question():
    return Question(
        prompt="What is a hash map?",
        reference_answer="A key-value structure with average O(1) lookups.",
    )


@pytest.fixture
def ai_response():
    return AIResponse(rating=7, feedback="Good")


@pytest.fixture
def evaluator(ai_response):
    mock = AsyncMock(spec=EvaluationClient)
    mock.evaluate.return_value = ai_response
    return mock


@pytest.fixture
def document_store():
    return InMemoryDocumentStore()


@pytest.fixture
def answer_store(document_store):
    return AnswerStore(document_store)


@pytest.fixture
def event_bus():
    return RecordingBus()


def finals(*texts):
    return [TranscriptSegment(text=text, is_final=True) for text in texts]
