from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from semantic_memory.analytics.store import clear_events
from semantic_memory.app import app, get_service
from semantic_memory.embeddings.config import EmbeddingConfig
from semantic_memory.search.service import EmbeddingsService
from semantic_memory.storage.backends import InMemoryBackend
from semantic_memory.storage.store import EmbeddingStore

HASHING_CONFIG = EmbeddingConfig(backend="hashing", dimension=384)


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def service(backend: InMemoryBackend) -> EmbeddingsService:
    return EmbeddingsService(store=EmbeddingStore(backend), config=HASHING_CONFIG)


@pytest.fixture
def client(service: EmbeddingsService):
    clear_events()
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
