from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from semantic_memory.errors import StorageUnavailableError
from semantic_memory.models import Embedding
from semantic_memory.storage.backends import InMemoryBackend
from semantic_memory.storage.store import EmbeddingStore


def _record(embedding_id: str, content: str = "text") -> Embedding:
    return Embedding(id=embedding_id, vector=[1.0, 0.0], content=content)


def test_initialize_loads_durable_records():
    backend = InMemoryBackend()
    backend.put(_record("a"))
    backend.put(_record("b"))
    store = EmbeddingStore(backend)
    assert not store.initialized
    store.initialize()
    assert store.initialized
    assert len(store) == 2


def test_initialize_is_idempotent():
    backend = MagicMock()
    backend.load_all.return_value = [_record("a")]
    store = EmbeddingStore(backend)
    store.initialize()
    store.initialize()
    assert backend.load_all.call_count == 1


def test_operations_auto_initialize():
    backend = InMemoryBackend()
    backend.put(_record("a", "persisted earlier"))
    store = EmbeddingStore(backend)
    assert store.get("a").content == "persisted earlier"
    assert store.initialized


def test_put_writes_mirror_and_backend():
    backend = InMemoryBackend()
    store = EmbeddingStore(backend)
    store.put(_record("a"))
    assert store.get("a") is not None
    assert [r.id for r in backend.load_all()] == ["a"]


def test_durable_write_failure_is_logged_not_raised(caplog):
    backend = MagicMock()
    backend.load_all.return_value = []
    backend.put.side_effect = OSError("disk full")
    store = EmbeddingStore(backend)

    with caplog.at_level(logging.WARNING):
        store.put(_record("a"))

    assert store.get("a") is not None
    assert "Failed to persist embedding a" in caplog.text


def test_failed_load_is_retried_on_next_call(caplog):
    backend = MagicMock()
    backend.load_all.side_effect = [OSError("unreadable"), [_record("persisted")]]
    store = EmbeddingStore(backend)

    with caplog.at_level(logging.ERROR), pytest.raises(StorageUnavailableError):
        store.initialize()
    assert not store.initialized
    assert "Could not load embeddings" in caplog.text

    store.initialize()
    assert store.initialized
    assert [r.id for r in store.list_all()] == ["persisted"]
    assert backend.load_all.call_count == 2


def test_operations_raise_while_storage_is_unreadable():
    backend = MagicMock()
    backend.load_all.side_effect = OSError("unreadable")
    store = EmbeddingStore(backend)
    with pytest.raises(StorageUnavailableError):
        store.clear()
    backend.clear.assert_not_called()


def test_get_reads_mirror_only():
    backend = MagicMock()
    backend.load_all.return_value = [_record("a")]
    store = EmbeddingStore(backend)
    store.initialize()
    store.get("a")
    store.get("missing")
    backend.get.assert_not_called()
    assert backend.load_all.call_count == 1


def test_get_missing_returns_none():
    assert EmbeddingStore().get("nope") is None


def test_delete_is_a_noop_for_missing_ids():
    store = EmbeddingStore()
    store.put(_record("a"))
    store.delete("missing")
    store.delete("a")
    store.delete("a")
    assert len(store) == 0


def test_delete_failure_still_removes_from_mirror():
    backend = MagicMock()
    backend.load_all.return_value = [_record("a")]
    backend.delete.side_effect = OSError("locked")
    store = EmbeddingStore(backend)
    store.delete("a")
    assert store.get("a") is None


def test_clear_empties_both_tiers():
    backend = InMemoryBackend()
    store = EmbeddingStore(backend)
    store.put(_record("a"))
    store.put(_record("b"))
    store.clear()
    assert store.list_all() == []
    assert backend.load_all() == []


def test_callers_cannot_mutate_the_mirror():
    store = EmbeddingStore()
    store.put(_record("a", "original"))
    store.get("a").content = "changed"
    store.list_all()[0].vector.append(9.9)
    record = store.get("a")
    assert record.content == "original"
    assert record.vector == [1.0, 0.0]


def test_list_all_keeps_insertion_order():
    store = EmbeddingStore()
    for name in ["z", "x", "y"]:
        store.put(_record(name))
    assert [r.id for r in store.list_all()] == ["z", "x", "y"]
