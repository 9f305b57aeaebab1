from __future__ import annotations

from typing import Sequence, TypeVar

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as _pairwise_cosine

from ..errors import DimensionMismatchError

T = TypeVar("T")


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors.

    Returns 0.0 when either vector has zero magnitude. Raises
    ``DimensionMismatchError`` when the lengths differ.
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatchError(a.shape[0], b.shape[0])

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))


def score_vectors(query: Sequence[float], vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """Score every candidate vector against ``query`` in one pass."""
    query_vec = np.asarray(query, dtype=np.float64)
    if len(vectors) == 0:
        return np.zeros(0)

    dim = query_vec.shape[0]
    for vec in vectors:
        if len(vec) != dim:
            raise DimensionMismatchError(dim, len(vec))

    matrix = np.asarray(vectors, dtype=np.float64)
    # Zero rows stay zero after sklearn's normalisation, so they score 0
    scores = _pairwise_cosine(query_vec.reshape(1, -1), matrix).flatten()
    return np.clip(scores, -1.0, 1.0)


def rank_by_similarity(
    query: Sequence[float],
    candidates: Sequence[T],
    vectors: Sequence[Sequence[float]],
    limit: int,
    min_similarity: float,
) -> list[tuple[T, float]]:
    """
    Rank ``candidates`` by similarity of their ``vectors`` to ``query``.

    Full scan: every candidate is scored, those strictly below
    ``min_similarity`` are dropped, the rest are sorted by descending score
    and truncated to ``limit``. The sort is stable, so on exact ties the
    candidate that comes first in ``candidates`` wins.
    """
    if len(candidates) != len(vectors):
        raise ValueError("candidates and vectors must have the same length")
    if limit <= 0 or not candidates:
        return []

    scores = score_vectors(query, vectors)
    order = np.argsort(-scores, kind="stable")
    ranked: list[tuple[T, float]] = []
    for idx in order:
        score = float(scores[idx])
        if score < min_similarity:
            break
        ranked.append((candidates[idx], score))
        if len(ranked) == limit:
            break
    return ranked
