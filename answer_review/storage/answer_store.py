"""
Write-once persistence of evaluated answers.
"""

import logging

from answer_review.core.errors import PersistenceError
from answer_review.core.models import AnswerKey, AnswerRecord, SaveOutcome
from answer_review.storage.document_store import (
    ANSWER_KEY_FIELDS,
    ConditionalDocumentStore,
    DocumentStore,
)

logger = logging.getLogger(__name__)


class AnswerStore:
    """
    Saves at most one AnswerRecord per (user_id, question_text, interview_id).

    The existence query and the insert are separate calls. When the backing
    store is a ConditionalDocumentStore the insert is conditional on the
    key, which closes the window between the two. Otherwise two concurrent
    saves of the same key can both pass the query and both insert.
    """

    def __init__(self, store: DocumentStore, collection: str = "user_answers"):
        self.store = store
        self.collection = collection

    async def save(self, key: AnswerKey, record: AnswerRecord) -> SaveOutcome:
        """
        Persist record unless key was already answered.

        Raises:
            PersistenceError: store query or insert failed
        """
        if record.key != key:
            raise ValueError(f"Record key {record.key} does not match {key}")

        try:
            existing = await self.store.find(self.collection, key.as_filters())
        except Exception as e:
            raise PersistenceError(f"Failed to query '{self.collection}': {e}") from e

        if existing:
            logger.info(
                f"[Store] {key.user_id} already answered '{key.question_text[:60]}' "
                f"in interview {key.interview_id}"
            )
            return SaveOutcome.ALREADY_ANSWERED

        document = record.model_dump(exclude={"created_at"})

        try:
            if isinstance(self.store, ConditionalDocumentStore):
                document_id = await self.store.insert_if_absent(
                    self.collection, document, ANSWER_KEY_FIELDS
                )
                if document_id is None:
                    logger.info(f"[Store] Concurrent save detected for {key}")
                    return SaveOutcome.ALREADY_ANSWERED
            else:
                document_id = await self.store.insert(self.collection, document)
        except Exception as e:
            raise PersistenceError(f"Failed to insert into '{self.collection}': {e}") from e

        logger.info(f"[Store] Saved answer {document_id} (rating={record.rating}) for {key.user_id}")
        return SaveOutcome.SAVED
