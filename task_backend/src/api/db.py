from __future__ import annotations

import json
import os
import re
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, List, Mapping, Optional

from .store import DocumentNotFoundError, DocumentSnapshot, DocumentStore, new_document_id

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(dict(data), default=_encode)


class SQLiteDocumentStore(DocumentStore):
    """
    Documents kept as JSON text in a single SQLite table keyed by (collection, id).

    Timestamps are stored as ISO8601 strings and read back as strings.
    Equality filters are evaluated inside SQLite with the JSON1 functions.
    """

    name = "sqlite"

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    UNIQUE (collection, id)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)")

    def query(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[DocumentSnapshot]:
        clauses = ["collection = ?"]
        params: list = [collection]
        for name, value in (filters or {}).items():
            if not _FIELD_NAME.match(name):
                raise ValueError(f"Invalid field name for filter: {name!r}")
            if isinstance(value, bool):
                # json booleans come back from json_extract as integers
                clauses.append(f"json_type(data, '$.{name}') = ?")
                params.append("true" if value else "false")
            else:
                clauses.append(f"json_extract(data, '$.{name}') = ?")
                params.append(value)

        sql = f"SELECT id, data FROM documents WHERE {' AND '.join(clauses)} ORDER BY seq"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(max(limit, 0))

        with self._conn() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [DocumentSnapshot(row["id"], json.loads(row["data"])) for row in rows]

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?", (collection, doc_id)
            ).fetchone()
        return json.loads(row["data"]) if row else None

    def add(self, collection: str, data: Mapping[str, Any]) -> str:
        doc_id = new_document_id()
        with self._conn() as conn:
            conn.execute(
                "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                (collection, doc_id, _dumps(data)),
            )
        return doc_id

    def update(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?", (collection, doc_id)
            ).fetchone()
            if not row:
                raise DocumentNotFoundError(collection, doc_id)
            merged = json.loads(row["data"])
            merged.update(data)
            conn.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
                (_dumps(merged), collection, doc_id),
            )

    def delete(self, collection: str, doc_id: str) -> None:
        with self._conn() as conn:
            cur = conn.execute("DELETE FROM documents WHERE collection = ? AND id = ?", (collection, doc_id))
            if cur.rowcount == 0:
                raise DocumentNotFoundError(collection, doc_id)
