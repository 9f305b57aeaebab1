from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent.parent / "data" / "embeddings.db"


@dataclass(frozen=True)
class StorageConfig:
    """
    Configuration for the durable side of the embedding store.
    """

    backend: str = os.getenv("EMBEDDING_STORE_BACKEND", "sqlite")
    db_path: Path = Path(os.getenv("EMBEDDING_STORE_PATH", str(_DEFAULT_DB_PATH)))
    table_name: str = "embeddings"


DEFAULT_STORAGE_CONFIG = StorageConfig()
