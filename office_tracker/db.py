"""SQLite persistence layer for Office Tracker."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

Connection = sqlite3.Connection
Row = sqlite3.Row


class Database:
    """Lightweight wrapper around SQLite operations.

    Two tables: a ``localStorage``-style string table holding the attendance
    state, and JSON documents keyed by collection and id for push
    subscriptions and the FCM token.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS local_storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    body TEXT NOT NULL,
                    updated_at TEXT,
                    PRIMARY KEY (collection, id)
                )
                """
            )
            conn.commit()

    # region Local storage
    def get_item(self, key: str) -> Optional[str]:
        with self.connect() as conn:
            cursor = conn.execute("SELECT value FROM local_storage WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO local_storage (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
                """,
                (key, value, _now()),
            )
            conn.commit()

    # endregion

    # region Documents
    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            row = cursor.fetchone()
            return json.loads(row["body"]) if row else None

    def set_document(self, collection: str, doc_id: str, body: Dict[str, Any]) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO documents (collection, id, body, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(collection, id) DO UPDATE SET
                    body=excluded.body,
                    updated_at=excluded.updated_at
                """,
                (collection, doc_id, json.dumps(body), _now()),
            )
            conn.commit()

    def delete_document(self, collection: str, doc_id: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT body FROM documents WHERE collection = ? ORDER BY id",
                (collection,),
            )
            return [json.loads(row["body"]) for row in cursor.fetchall()]

    # endregion


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


__all__ = ["Database"]
