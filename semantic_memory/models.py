from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_embedding_id() -> str:
    return str(uuid.uuid4())


class Embedding(BaseModel):
    id: str = Field(..., min_length=1)
    vector: list[float]
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class SearchHit(BaseModel):
    embedding: Embedding
    similarity: float


class EmbeddingStats(BaseModel):
    count: int
    dimensions: int
    initialized: bool


# ── API payloads ─────────────────────────────────────────────────────────


class StoreTextRequest(BaseModel):
    content: str = Field(..., description="Text to vectorise and store")
    metadata: dict[str, Any] | None = Field(
        default=None, description="Free-form tags, source ids, timestamps"
    )


class StoreTextResponse(BaseModel):
    id: str


class BulkStoreRequest(BaseModel):
    items: list[StoreTextRequest] = Field(..., min_length=1, max_length=500)


class BulkStoreResponse(BaseModel):
    ids: list[str]


class UpdateTextRequest(BaseModel):
    content: str
    metadata: dict[str, Any] | None = Field(
        default=None, description="Replaces existing metadata when given"
    )


class SearchRequest(BaseModel):
    query: str
    limit: int = Field(default=5, ge=1, le=100)
    min_similarity: float = Field(default=0.3, ge=-1.0, le=1.0)


class SearchResponse(BaseModel):
    results: list[SearchHit]
    total_candidates: int


class ReindexResponse(BaseModel):
    reindexed: int


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
