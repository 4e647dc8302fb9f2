"""Volatile in-process document store."""
import logging
import threading
from typing import Dict, List, Optional

from models.document import Document

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """
    Thread-safe store of uploaded documents, keyed by document id.

    Lives as long as the process. Request handlers share one instance, which
    is passed to them explicitly rather than reached through a global.
    """

    def __init__(self):
        self._documents: Dict[str, Document] = {}
        self._lock = threading.Lock()

    def put(self, document: Document) -> Document:
        """
        Store a document.

        A document with the same name as an existing entry replaces that
        entry and takes over its id, so re-uploading a file does not create
        a duplicate.

        Returns:
            The stored document, with its final id
        """
        with self._lock:
            existing = next(
                (doc for doc in self._documents.values() if doc.name == document.name),
                None
            )
            if existing is not None and existing.document_id != document.document_id:
                logger.info(f"Document with name '{document.name}' already exists, updating existing entry")
                document.document_id = existing.document_id

            self._documents[document.document_id] = document

        logger.info(
            f"Stored document {document.document_id}: {document.name}, "
            f"{document.page_count} pages"
        )
        return document

    def get(self, document_id: str) -> Optional[Document]:
        """Return the document, or None if it is not stored."""
        with self._lock:
            document = self._documents.get(document_id)

        if document is None:
            logger.warning(f"Document with ID {document_id} not found")
        return document

    def delete(self, document_id: str) -> bool:
        """Remove a document. Returns False if it was not stored."""
        with self._lock:
            removed = self._documents.pop(document_id, None)

        if removed is None:
            logger.warning(f"Document with ID {document_id} not found for deletion")
            return False

        logger.info(f"Document with ID {document_id} removed from store")
        return True

    def list(self) -> List[Document]:
        """All stored documents in insertion order."""
        with self._lock:
            return list(self._documents.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
