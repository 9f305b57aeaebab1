from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class EmbeddingConfig:
    backend: str = os.getenv("EMBEDDING_BACKEND", "hashing")
    dimension: int = int(os.getenv("EMBEDDING_DIMENSIONS", "384"))
    model_name: str = os.getenv("EMBEDDING_MODEL_NAME", "all-MiniLM-L6-v2")
    # Tokens shorter than this are dropped before hashing
    min_token_length: int = 3
    default_limit: int = 5
    default_min_similarity: float = 0.3


DEFAULT_EMBEDDING_CONFIG = EmbeddingConfig()
