"""
Exceptions raised by the semantic memory engine.
"""
from __future__ import annotations


class SemanticMemoryError(Exception):
    """Base exception for all semantic memory errors."""


class DimensionMismatchError(SemanticMemoryError):
    """
    Two vectors with different lengths were compared.

    Raised when:
    - A stored vector was produced with a different dimensionality than the
      current embedder (configuration changed without a reindex)
    - A caller passes vectors of unequal length to the similarity engine
    """

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector dimensions must match: {expected} != {actual}")
        self.expected = expected
        self.actual = actual


class EmbeddingNotFoundError(SemanticMemoryError):
    """An update targeted an id that is not in the store."""

    def __init__(self, embedding_id: str):
        super().__init__(f"Embedding {embedding_id} not found")
        self.embedding_id = embedding_id


class PersistenceError(SemanticMemoryError):
    """
    The in-memory write itself could not be performed.

    Durable-backend failures are not reported with this exception; they are
    logged and the in-memory mirror stays authoritative.
    """


class StorageUnavailableError(SemanticMemoryError):
    """
    Durable storage could not be read while loading the store.

    The store stays uninitialised, so the next operation retries the load
    instead of running against an incomplete mirror.
    """
