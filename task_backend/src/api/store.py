from __future__ import annotations

import copy
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class DocumentNotFoundError(LookupError):
    """Raised by update/delete when the target document does not exist."""

    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"{collection}/{doc_id} does not exist")
        self.collection = collection
        self.doc_id = doc_id


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class DocumentSnapshot:
    """A document id together with a copy of its data."""

    id: str
    data: Dict[str, Any] = field(default_factory=dict)


# PUBLIC_INTERFACE
class DocumentStore(ABC):
    """
    Collection-scoped document persistence.

    Documents are schemaless dicts addressed by (collection, id). Ids are
    assigned by the store on add.
    """

    name: str = "abstract"

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        """Return documents whose fields equal every value in filters, up to limit."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the data of a document, or None if it does not exist."""

    @abstractmethod
    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        """Store a new document and return its generated id."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        """Merge data into an existing document. Raises DocumentNotFoundError if missing."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Backends that can tell raise DocumentNotFoundError if missing."""

    def timestamp(self) -> Any:
        """Value to store for createdAt/updatedAt."""
        return datetime.now(timezone.utc)

    def close(self) -> None:
        """Release backend resources."""


def new_document_id() -> str:
    return uuid.uuid4().hex


def _matches(data: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
    for key, expected in filters.items():
        if key not in data:
            return False
        actual = data[key]
        # bool is an int subclass; keep True from matching 1
        if isinstance(actual, bool) != isinstance(expected, bool) or actual != expected:
            return False
    return True


class InMemoryDocumentStore(DocumentStore):
    """
    Thread-safe in-memory store suitable for testing and default runtime.
    """

    name = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def query(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        with self._lock:
            results = [
                DocumentSnapshot(doc_id, copy.deepcopy(data))
                for doc_id, data in self._collection(collection).items()
                if _matches(data, filters or {})
            ]
        if limit is not None:
            results = results[: max(limit, 0)]
        return results

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            data = self._collection(collection).get(doc_id)
            return None if data is None else copy.deepcopy(data)

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = new_document_id()
        with self._lock:
            self._collection(collection)[doc_id] = copy.deepcopy(dict(data))
        return doc_id

    def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        with self._lock:
            existing = self._collection(collection).get(doc_id)
            if existing is None:
                raise DocumentNotFoundError(collection, doc_id)
            existing.update(copy.deepcopy(dict(data)))

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            if self._collection(collection).pop(doc_id, None) is None:
                raise DocumentNotFoundError(collection, doc_id)


# PUBLIC_INTERFACE
def build_store(settings: Optional[Settings] = None) -> DocumentStore:
    """
    Return the store configured by settings.
    - memory: InMemoryDocumentStore
    - sqlite: SQLiteDocumentStore (standard library sqlite3)
    - firestore: FirestoreDocumentStore (requires the 'firestore' extra)
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteDocumentStore

        logger.info("Using sqlite document store at %s", settings.sqlite_db_path)
        return SQLiteDocumentStore(settings.sqlite_db_path)
    if settings.persistence_backend == "firestore":
        from .firestore_store import FirestoreDocumentStore

        logger.info("Using firestore document store (project=%s)", settings.firestore_project_id)
        return FirestoreDocumentStore(project=settings.firestore_project_id)
    logger.info("Using in-memory document store")
    return InMemoryDocumentStore()
