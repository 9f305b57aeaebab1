from __future__ import annotations

import re
from collections import Counter
from typing import Protocol

import numpy as np

from .config import DEFAULT_EMBEDDING_CONFIG, EmbeddingConfig

# Anything that is not an ASCII word character or whitespace becomes a separator
_PUNCTUATION = re.compile(r"[^A-Za-z0-9_\s]")

_HASH_MASK = 0xFFFFFFFF
_SIGN_BIT = 0x80000000


class Embedder(Protocol):
    """Anything that maps text to a fixed-length vector."""

    dimension: int

    def encode(self, text: str) -> np.ndarray: ...


def tokenize(text: str, min_length: int = DEFAULT_EMBEDDING_CONFIG.min_token_length) -> list[str]:
    """Split normalised text into word tokens, dropping very short ones."""
    return [t for t in _PUNCTUATION.sub(" ", text).split() if len(t) >= min_length]


def token_hash(token: str) -> int:
    """
    Stable 32-bit polynomial rolling hash (base 31) of a token.

    Iterates over UTF-16 code units, wraps to a signed 32-bit integer and
    returns its absolute value. The result depends only on the characters,
    so persisted vectors stay comparable across restarts.
    """
    h = 0
    encoded = token.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & _HASH_MASK
    if h & _SIGN_BIT:
        h -= 1 << 32
    return abs(h)


class HashingEmbedder:
    """Term-frequency vectors projected into ``dimension`` buckets by hashing."""

    def __init__(self, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> None:
        self.dimension = config.dimension
        self._min_token_length = config.min_token_length

    def encode(self, text: str) -> np.ndarray:
        vector = np.zeros(self.dimension, dtype=np.float64)
        if not text or not text.strip():
            return vector

        tokens = tokenize(text.lower().strip(), self._min_token_length)
        if not tokens:
            return vector

        total = len(tokens)
        for term, count in Counter(tokens).items():
            vector[token_hash(term) % self.dimension] += count / total

        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector
        return vector / norm


def build_embedder(config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> Embedder:
    """Return the embedder selected by ``config.backend``."""
    if config.backend == "hashing":
        return HashingEmbedder(config)
    if config.backend == "sentence-transformers":
        from .transformer import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder(config.model_name)
    raise ValueError(f"Unknown embedding backend: {config.backend!r}")


def encode_text(text: str, config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    """Encode a single string into a 1-D hashed embedding vector."""
    return HashingEmbedder(config).encode(text)


def encode_batch(texts: list[str], config: EmbeddingConfig = DEFAULT_EMBEDDING_CONFIG) -> np.ndarray:
    """Encode a list of strings into a 2-D array of shape (N, dim)."""
    embedder = HashingEmbedder(config)
    if not texts:
        return np.zeros((0, embedder.dimension))
    return np.vstack([embedder.encode(t) for t in texts])
