from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from google.api_core.exceptions import NotFound
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .store import DocumentNotFoundError, DocumentSnapshot, DocumentStore


class FirestoreDocumentStore(DocumentStore):
    """
    Cloud Firestore backend. Credentials are resolved by the Google client
    library (GOOGLE_APPLICATION_CREDENTIALS, metadata server, emulator host).
    """

    name = "firestore"

    def __init__(self, project: Optional[str] = None, client: Optional[firestore.Client] = None) -> None:
        self._client = client or firestore.Client(project=project)

    def query(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        query = self._client.collection(collection)
        for name, value in (filters or {}).items():
            query = query.where(filter=FieldFilter(name, "==", value))
        if limit is not None:
            query = query.limit(limit)
        return [DocumentSnapshot(doc.id, doc.to_dict() or {}) for doc in query.stream()]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self._client.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        _, ref = self._client.collection(collection).add(dict(data))
        return ref.id

    def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        try:
            self._client.collection(collection).document(doc_id).update(dict(data))
        except NotFound as exc:
            raise DocumentNotFoundError(collection, doc_id) from exc

    def delete(self, collection: str, doc_id: str) -> None:
        # Firestore deletes are idempotent; existence is checked by callers
        self._client.collection(collection).document(doc_id).delete()

    def timestamp(self) -> Any:
        return firestore.SERVER_TIMESTAMP

    def close(self) -> None:
        self._client.close()
