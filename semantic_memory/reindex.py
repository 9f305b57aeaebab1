"""
Offline script to recompute every persisted embedding vector.

Run it after changing ``EMBEDDING_DIMENSIONS`` or ``EMBEDDING_BACKEND`` so
stored vectors match the current embedder again.

Usage:
    python -m semantic_memory.reindex
"""
from __future__ import annotations

import logging

from .search.service import EmbeddingsService, create_service


def run_reindex(service: EmbeddingsService | None = None) -> int:
    service = service or create_service()
    stats = service.get_stats()
    print(f"Reindexing embeddings with {stats.dimensions}-dimensional vectors ...")
    count = service.reindex()
    print(f"Reindexed {count} embeddings")
    return count


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_reindex()
