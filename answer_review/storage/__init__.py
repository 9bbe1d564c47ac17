"""Persistence of evaluated answers."""

from answer_review.storage.answer_store import AnswerStore
from answer_review.storage.document_store import (
    ConditionalDocumentStore,
    DocumentStore,
    InMemoryDocumentStore,
    SqlDocumentStore,
)

__all__ = [
    "AnswerStore",
    "ConditionalDocumentStore",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SqlDocumentStore",
]
