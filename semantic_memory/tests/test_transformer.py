from __future__ import annotations

import sys
import types
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from semantic_memory.embeddings.config import EmbeddingConfig
from semantic_memory.embeddings.encoder import build_embedder


@pytest.fixture
def fake_sentence_transformers():
    model = MagicMock()
    model.get_sentence_embedding_dimension.return_value = 8
    model.encode.return_value = np.full(8, 1 / np.sqrt(8), dtype=np.float32)
    module = types.ModuleType("sentence_transformers")
    module.SentenceTransformer = MagicMock(return_value=model)
    with patch.dict(sys.modules, {"sentence_transformers": module}):
        yield module, model


def test_build_embedder_loads_model(fake_sentence_transformers):
    module, _ = fake_sentence_transformers
    embedder = build_embedder(EmbeddingConfig(backend="sentence-transformers", model_name="tiny-model"))
    module.SentenceTransformer.assert_called_once_with("tiny-model")
    assert embedder.dimension == 8


def test_encode_returns_normalised_float64(fake_sentence_transformers):
    _, model = fake_sentence_transformers
    embedder = build_embedder(EmbeddingConfig(backend="sentence-transformers"))
    vec = embedder.encode("semantic search")
    assert vec.dtype == np.float64
    assert vec.shape == (8,)
    assert np.linalg.norm(vec) == pytest.approx(1.0, abs=1e-6)
    assert model.encode.call_args.kwargs["normalize_embeddings"] is True


def test_encode_empty_text_skips_model(fake_sentence_transformers):
    _, model = fake_sentence_transformers
    embedder = build_embedder(EmbeddingConfig(backend="sentence-transformers"))
    assert not embedder.encode("  ").any()
    model.encode.assert_not_called()
