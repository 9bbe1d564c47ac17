"""
Document store backends for saved answers.

A store supports equality-filtered queries and inserts that stamp a
server-side created_at. Stores that can enforce uniqueness of a set of fields
derive from ConditionalDocumentStore, whose insert_if_absent AnswerStore
prefers over a plain insert.
"""

import asyncio
import copy
import hashlib
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    func,
    insert,
    select,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class DocumentStore(ABC):
    """Abstract document store."""

    @abstractmethod
    async def find(self, collection: str, filters: Dict[str, Any]) -> List[Document]:
        """Return every document whose fields equal all filter values."""
        pass

    @abstractmethod
    async def insert(self, collection: str, document: Document) -> str:
        """Insert a document, assigning created_at. Returns the new document id."""
        pass


class ConditionalDocumentStore(DocumentStore):
    """Document store that can insert atomically unless a key already exists."""

    @abstractmethod
    async def insert_if_absent(
        self, collection: str, document: Document, key_fields: Sequence[str]
    ) -> Optional[str]:
        """
        Insert unless a document with the same key_fields values exists.

        Returns:
            The new document id, or None if a matching document already exists
        """
        pass


class InMemoryDocumentStore(ConditionalDocumentStore):
    """Process-local store, used for tests and the CLI without a database."""

    def __init__(self):
        self._collections: Dict[str, List[Document]] = {}
        self._lock = asyncio.Lock()

    async def find(self, collection: str, filters: Dict[str, Any]) -> List[Document]:
        documents = self._collections.get(collection, [])
        return [
            copy.deepcopy(doc)
            for doc in documents
            if all(doc.get(field) == value for field, value in filters.items())
        ]

    async def insert(self, collection: str, document: Document) -> str:
        return self._append(collection, document)

    async def insert_if_absent(
        self, collection: str, document: Document, key_fields: Sequence[str]
    ) -> Optional[str]:
        async with self._lock:
            filters = {field: document.get(field) for field in key_fields}
            if await self.find(collection, filters):
                return None
            return self._append(collection, document)

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, []))

    def _append(self, collection: str, document: Document) -> str:
        stored = copy.deepcopy(document)
        stored["id"] = uuid.uuid4().hex
        stored["created_at"] = datetime.now(timezone.utc)
        self._collections.setdefault(collection, []).append(stored)
        return stored["id"]


ANSWER_KEY_FIELDS = ("user_id", "question_text", "interview_id")


def question_digest(question_text: str) -> str:
    """SHA-256 of the question text, indexed in place of the unbounded text column."""
    return hashlib.sha256(question_text.encode("utf-8")).hexdigest()


def answer_table(name: str, metadata: MetaData) -> Table:
    """
    Table layout for saved answers; the idempotency key is a unique constraint.

    question_text is TEXT, which some backends (MySQL) cannot put in a unique
    index without a prefix length, so the constraint covers question_hash.
    """
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("interview_id", String(255), nullable=False, index=True),
        Column("question_text", Text, nullable=False),
        Column("question_hash", String(64), nullable=False),
        Column("reference_answer", Text, nullable=False),
        Column("user_answer", Text, nullable=False),
        Column("feedback", Text, nullable=False),
        Column("rating", Integer, nullable=False),
        Column("user_id", String(255), nullable=False, index=True),
        Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
        UniqueConstraint("user_id", "question_hash", "interview_id", name=f"uq_{name}_answer_key"),
    )


def create_store_engine(database_url: str) -> Engine:
    """Create an engine usable from worker threads."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # One shared connection, otherwise every thread would see its own empty database
        return create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_engine(database_url)


class SqlDocumentStore(ConditionalDocumentStore):
    """
    SQLAlchemy-backed store. Each collection is a table with the answer layout.

    Blocking database calls run in a worker thread so the event loop keeps
    serving speech and UI events.
    """

    def __init__(self, database_url: str = "sqlite:///answers.db", engine: Optional[Engine] = None):
        self.engine = engine or create_store_engine(database_url)
        self.metadata = MetaData()
        self._tables: Dict[str, Table] = {}
        self._tables_lock = threading.Lock()

    def _table(self, collection: str) -> Table:
        with self._tables_lock:
            if collection not in self._tables:
                table = answer_table(collection, self.metadata)
                table.create(self.engine, checkfirst=True)
                self._tables[collection] = table
                logger.info(f"Using table '{collection}' on {self.engine.url}")
            return self._tables[collection]

    async def find(self, collection: str, filters: Dict[str, Any]) -> List[Document]:
        return await asyncio.to_thread(self._find_sync, collection, filters)

    async def insert(self, collection: str, document: Document) -> str:
        return await asyncio.to_thread(self._insert_sync, collection, document)

    async def insert_if_absent(
        self, collection: str, document: Document, key_fields: Sequence[str]
    ) -> Optional[str]:
        # The unique constraint covers the answer key only
        if tuple(key_fields) != ANSWER_KEY_FIELDS:
            raise ValueError(f"SqlDocumentStore enforces uniqueness on {ANSWER_KEY_FIELDS} only")
        try:
            return await self.insert(collection, document)
        except IntegrityError:
            logger.info(f"Conditional insert into '{collection}' hit an existing key")
            return None

    def _find_sync(self, collection: str, filters: Dict[str, Any]) -> List[Document]:
        table = self._table(collection)
        statement = select(table).where(*(table.c[field] == value for field, value in filters.items()))
        with self.engine.connect() as conn:
            return [dict(row._mapping) for row in conn.execute(statement)]

    def _insert_sync(self, collection: str, document: Document) -> str:
        table = self._table(collection)
        values = {k: v for k, v in document.items() if k in table.c and k not in ("id", "created_at")}
        values["question_hash"] = question_digest(values["question_text"])
        with self.engine.begin() as conn:
            result = conn.execute(insert(table).values(**values))
            return str(result.inserted_primary_key[0])
