"""Durable backends for the embedding store.

A backend only needs key-value put/delete plus a full scan; the in-memory
mirror in ``EmbeddingStore`` is what serves reads.
"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from ..models import Embedding
from .config import DEFAULT_STORAGE_CONFIG, StorageConfig

logger = logging.getLogger(__name__)


class DurableBackend(ABC):
    """Key-value persistence for embedding records."""

    @abstractmethod
    def load_all(self) -> list[Embedding]:
        """Return every persisted record, oldest first."""

    @abstractmethod
    def put(self, embedding: Embedding) -> None:
        """Insert or replace the record with ``embedding.id``."""

    @abstractmethod
    def delete(self, embedding_id: str) -> None:
        """Remove a record; missing ids are ignored."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""

    def close(self) -> None:
        pass


class InMemoryBackend(DurableBackend):
    """Process-local backend, used for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._records: dict[str, Embedding] = {}

    def load_all(self) -> list[Embedding]:
        return [r.model_copy(deep=True) for r in self._records.values()]

    def put(self, embedding: Embedding) -> None:
        self._records[embedding.id] = embedding.model_copy(deep=True)

    def delete(self, embedding_id: str) -> None:
        self._records.pop(embedding_id, None)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class SQLiteBackend(DurableBackend):
    """
    SQLite file backend.

    Vectors and metadata are stored as JSON text. The connection is opened on
    first use and shared across threads behind a lock.
    """

    def __init__(self, db_path: Path | str, table_name: str = "embeddings") -> None:
        if not table_name.isidentifier():
            raise ValueError(f"Invalid table name: {table_name!r}")
        self.db_path = Path(db_path)
        self.table_name = table_name
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._init_schema(self._conn)
            logger.debug("Connected to SQLite embedding store: %s", self.db_path)
        return self._conn

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                id TEXT PRIMARY KEY,
                vector TEXT NOT NULL,
                content TEXT NOT NULL,
                metadata TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        conn.execute(f"""
            CREATE INDEX IF NOT EXISTS ix_{self.table_name}_created_at
            ON {self.table_name} (created_at)
        """)
        conn.commit()

    def load_all(self) -> list[Embedding]:
        with self._lock:
            rows = self._connection().execute(
                f"SELECT id, vector, content, metadata, created_at, updated_at "
                f"FROM {self.table_name} ORDER BY rowid"
            ).fetchall()

        records: list[Embedding] = []
        for row in rows:
            try:
                records.append(Embedding(
                    id=row["id"],
                    vector=json.loads(row["vector"]),
                    content=row["content"],
                    metadata=json.loads(row["metadata"]),
                    created_at=row["created_at"],
                    updated_at=row["updated_at"],
                ))
            except (json.JSONDecodeError, ValidationError):
                logger.warning("Skipping unreadable embedding row %s", row["id"], exc_info=True)
        return records

    def put(self, embedding: Embedding) -> None:
        params = (
            embedding.id,
            json.dumps(embedding.vector),
            embedding.content,
            json.dumps(embedding.metadata),
            embedding.created_at.isoformat(),
            embedding.updated_at.isoformat(),
        )
        with self._lock:
            conn = self._connection()
            conn.execute(
                f"""
                INSERT INTO {self.table_name}
                    (id, vector, content, metadata, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    vector = excluded.vector,
                    content = excluded.content,
                    metadata = excluded.metadata,
                    updated_at = excluded.updated_at
                """,
                params,
            )
            conn.commit()

    def delete(self, embedding_id: str) -> None:
        with self._lock:
            conn = self._connection()
            conn.execute(f"DELETE FROM {self.table_name} WHERE id = ?", (embedding_id,))
            conn.commit()

    def clear(self) -> None:
        with self._lock:
            conn = self._connection()
            conn.execute(f"DELETE FROM {self.table_name}")
            conn.commit()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


def create_backend(config: StorageConfig = DEFAULT_STORAGE_CONFIG) -> DurableBackend:
    """Return the durable backend selected by ``config.backend``."""
    if config.backend == "sqlite":
        return SQLiteBackend(config.db_path, config.table_name)
    if config.backend == "memory":
        return InMemoryBackend()
    raise ValueError(f"Unknown storage backend: {config.backend!r}")
