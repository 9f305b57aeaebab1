"""Neural embedder backed by sentence-transformers.

Installed through the ``transformers`` extra. Vectors are L2-normalised so
they can be mixed with the rest of the engine, but they are not comparable
with hashed vectors: switching backends requires a reindex.
"""
from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder:
    """Thin wrapper around a SentenceTransformer model, loaded when constructed."""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2") -> None:
        from sentence_transformers import SentenceTransformer

        logger.info("Loading sentence-transformer model %s", model_name)
        self.model_name = model_name
        self._model = SentenceTransformer(model_name)
        self.dimension: int = self._model.get_sentence_embedding_dimension()

    def encode(self, text: str) -> np.ndarray:
        if not text or not text.strip():
            return np.zeros(self.dimension, dtype=np.float64)
        vector = self._model.encode(
            text,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return np.asarray(vector, dtype=np.float64)
