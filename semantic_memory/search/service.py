from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Any, Iterable

from pydantic import ValidationError

from ..embeddings.config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig
from ..embeddings.encoder import Embedder, build_embedder
from ..embeddings.similarity import rank_by_similarity
from ..errors import EmbeddingNotFoundError, PersistenceError
from ..models import Embedding, EmbeddingStats, SearchHit, new_embedding_id, utc_now
from ..storage.backends import create_backend
from ..storage.config import DEFAULT_STORAGE_CONFIG, StorageConfig
from ..storage.store import EmbeddingStore

logger = logging.getLogger(__name__)


class ServiceState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class EmbeddingsService:
    """
    Orchestrates the embedder, the similarity engine and the store.

    Construct one per process and hand it to whoever needs it. Every data
    operation initialises the store on first use, so callers do not have to
    call ``initialize`` themselves.
    """

    def __init__(
        self,
        store: EmbeddingStore | None = None,
        embedder: Embedder | None = None,
        config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
    ) -> None:
        self.config = config
        self.store = store if store is not None else EmbeddingStore()
        self.embedder = embedder if embedder is not None else build_embedder(config)
        self._state = ServiceState.UNINITIALIZED
        self._state_lock = threading.Lock()

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def dimensions(self) -> int:
        return self.embedder.dimension

    def initialize(self) -> None:
        with self._state_lock:
            if self._state is ServiceState.READY:
                return
            self._state = ServiceState.INITIALIZING
            logger.info("Initializing embeddings service")
            try:
                self.store.initialize()
            except Exception:
                self._state = ServiceState.UNINITIALIZED
                raise
            self._state = ServiceState.READY
            logger.info("Embeddings service ready with %d embeddings", len(self.store))

    def _ensure_ready(self) -> None:
        if self._state is not ServiceState.READY:
            self.initialize()

    def generate_embedding(self, text: str) -> list[float]:
        """Vectorise ``text``; empty text yields the all-zero vector."""
        return self.embedder.encode(text).tolist()

    def _build_record(self, embedding_id: str, content: Any, metadata: Any, **extra: Any) -> Embedding:
        if not isinstance(content, str):
            raise PersistenceError(f"content must be a string, got {type(content).__name__}")
        try:
            return Embedding(
                id=embedding_id,
                vector=self.generate_embedding(content),
                content=content,
                metadata=metadata,
                **extra,
            )
        except ValidationError as exc:
            raise PersistenceError(f"Invalid embedding record: {exc}") from exc

    def _new_record(self, content: Any, metadata: Any) -> Embedding:
        now = utc_now()
        return self._build_record(
            new_embedding_id(),
            content,
            metadata if metadata is not None else {},
            created_at=now,
            updated_at=now,
        )

    def store_text(self, content: str, metadata: dict[str, Any] | None = None) -> str:
        """Vectorise and store ``content``; returns the new embedding id."""
        self._ensure_ready()
        record = self._new_record(content, metadata)
        self.store.put(record)
        logger.debug("Stored embedding %s", record.id)
        return record.id

    def store_texts(self, items: Iterable[tuple[str, dict[str, Any] | None]]) -> list[str]:
        """
        Store several texts; each item is ``(content, metadata)``.

        Every item is validated before anything is written, so one bad item
        leaves the store unchanged.
        """
        self._ensure_ready()
        records = [self._new_record(content, metadata) for content, metadata in items]
        for record in records:
            self.store.put(record)
        logger.debug("Stored %d embeddings", len(records))
        return [record.id for record in records]

    def update_text(self, embedding_id: str, content: str, metadata: dict[str, Any] | None = None) -> Embedding:
        """
        Replace the content (and vector) of an existing embedding.

        ``metadata`` replaces the stored metadata only when given. Returns a
        copy of the updated record. Raises ``EmbeddingNotFoundError`` when
        ``embedding_id`` is unknown.
        """
        self._ensure_ready()
        existing = self.store.get(embedding_id)
        if existing is None:
            raise EmbeddingNotFoundError(embedding_id)

        record = self._build_record(
            embedding_id,
            content,
            metadata if metadata is not None else existing.metadata,
            created_at=existing.created_at,
            updated_at=utc_now(),
        )
        self.store.put(record)
        logger.debug("Updated embedding %s", embedding_id)
        return record.model_copy(deep=True)

    def delete_text(self, embedding_id: str) -> None:
        """Delete an embedding; unknown ids are ignored."""
        self._ensure_ready()
        self.store.delete(embedding_id)
        logger.debug("Deleted embedding %s", embedding_id)

    def search_semantic(
        self,
        query: str,
        limit: int | None = None,
        min_similarity: float | None = None,
    ) -> list[SearchHit]:
        """
        Rank stored texts by cosine similarity to ``query``.

        Returns at most ``limit`` hits scoring at least ``min_similarity``,
        best first. Exact ties go to the most recently stored text.
        """
        self._ensure_ready()
        limit = self.config.default_limit if limit is None else limit
        if min_similarity is None:
            min_similarity = self.config.default_min_similarity

        start_time = time.time()
        # Newest first, so the stable ranking favours recent records on ties
        candidates = self.store.list_all()[::-1]
        if not candidates:
            return []

        query_vector = self.embedder.encode(query)
        ranked = rank_by_similarity(
            query_vector,
            candidates,
            [c.vector for c in candidates],
            limit=limit,
            min_similarity=min_similarity,
        )

        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        logger.debug(
            "Search returned %d of %d candidates in %sms", len(ranked), len(candidates), elapsed_ms
        )
        return [SearchHit(embedding=emb, similarity=score) for emb, score in ranked]

    def get_embedding(self, embedding_id: str) -> Embedding | None:
        self._ensure_ready()
        return self.store.get(embedding_id)

    def get_all_embeddings(self) -> list[Embedding]:
        self._ensure_ready()
        return self.store.list_all()

    def clear_all(self) -> None:
        self._ensure_ready()
        self.store.clear()
        logger.info("Cleared all embeddings")

    def get_stats(self) -> EmbeddingStats:
        return EmbeddingStats(
            count=len(self.store),
            dimensions=self.dimensions,
            initialized=self._state is ServiceState.READY,
        )

    def reindex(self) -> int:
        """Recompute every stored vector with the current embedder."""
        self._ensure_ready()
        records = self.store.list_all()
        for record in records:
            record.vector = self.generate_embedding(record.content)
            record.updated_at = utc_now()
            self.store.put(record)
        logger.info("Reindexed %d embeddings", len(records))
        return len(records)


def create_service(
    embedding_config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG,
    storage_config: StorageConfig = DEFAULT_STORAGE_CONFIG,
) -> EmbeddingsService:
    """Build a service from configuration. Nothing is loaded until first use."""
    store = EmbeddingStore(create_backend(storage_config))
    return EmbeddingsService(store=store, config=embedding_config)
