from __future__ import annotations

import logging
import threading

from ..errors import StorageUnavailableError
from ..models import Embedding
from .backends import DurableBackend, InMemoryBackend

logger = logging.getLogger(__name__)


class EmbeddingStore:
    """
    In-memory mirror of every embedding, backed by a durable backend.

    The mirror is authoritative for reads. Writes land in the mirror first and
    are then persisted; a failed durable write is logged and not rolled back.
    Callers only ever receive copies, so the mirror can only change through
    ``put``, ``delete`` and ``clear``.
    """

    def __init__(self, backend: DurableBackend | None = None) -> None:
        self.backend = backend if backend is not None else InMemoryBackend()
        self._mirror: dict[str, Embedding] = {}
        self._initialized = False
        self._lock = threading.RLock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Load every durable record into the mirror. Later calls are no-ops.

        Raises ``StorageUnavailableError`` if the backend cannot be read; the
        store then stays uninitialised and the next call retries the load.
        """
        with self._lock:
            if self._initialized:
                return
            try:
                records = self.backend.load_all()
            except Exception as exc:
                logger.error("Could not load embeddings from durable storage", exc_info=True)
                raise StorageUnavailableError(f"Could not load embeddings: {exc}") from exc
            for record in records:
                self._mirror[record.id] = record
            self._initialized = True
            logger.info("Loaded %d embeddings from durable storage", len(records))

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    def put(self, embedding: Embedding) -> None:
        self._ensure_initialized()
        with self._lock:
            self._mirror[embedding.id] = embedding.model_copy(deep=True)
            try:
                self.backend.put(embedding)
                logger.debug("Persisted embedding %s", embedding.id)
            except Exception:
                logger.warning("Failed to persist embedding %s", embedding.id, exc_info=True)

    def get(self, embedding_id: str) -> Embedding | None:
        self._ensure_initialized()
        with self._lock:
            record = self._mirror.get(embedding_id)
            return record.model_copy(deep=True) if record is not None else None

    def delete(self, embedding_id: str) -> None:
        self._ensure_initialized()
        with self._lock:
            self._mirror.pop(embedding_id, None)
            try:
                self.backend.delete(embedding_id)
            except Exception:
                logger.warning("Failed to delete embedding %s from durable storage", embedding_id, exc_info=True)

    def list_all(self) -> list[Embedding]:
        """Return copies of every record in insertion order."""
        self._ensure_initialized()
        with self._lock:
            return [r.model_copy(deep=True) for r in self._mirror.values()]

    def clear(self) -> None:
        self._ensure_initialized()
        with self._lock:
            self._mirror.clear()
            try:
                self.backend.clear()
            except Exception:
                logger.warning("Failed to clear durable storage", exc_info=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._mirror)
