from __future__ import annotations

import logging
import time

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event, record_search
from .auth.dependencies import require_admin, require_editor, require_reader
from .auth.users import DEFAULT_AUTH_CONFIG, authenticate
from .errors import (
    DimensionMismatchError,
    EmbeddingNotFoundError,
    PersistenceError,
    StorageUnavailableError,
)
from .models import (
    BulkStoreRequest,
    BulkStoreResponse,
    Embedding,
    EmbeddingStats,
    LoginRequest,
    ReindexResponse,
    SearchRequest,
    SearchResponse,
    StoreTextRequest,
    StoreTextResponse,
    UpdateTextRequest,
)
from .search.service import EmbeddingsService, create_service

logger = logging.getLogger(__name__)

app = FastAPI(title="Semantic Memory API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_AUTH_CONFIG.session_secret)

# One service per process; nothing touches storage until the first request
app.state.service = create_service()


def get_service(request: Request) -> EmbeddingsService:
    return request.app.state.service


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(EmbeddingNotFoundError)
async def _not_found(request: Request, exc: EmbeddingNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(DimensionMismatchError)
async def _dimension_mismatch(request: Request, exc: DimensionMismatchError) -> JSONResponse:
    logger.error("Stored vectors do not match the embedder: %s", exc)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def _persistence(request: Request, exc: PersistenceError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(StorageUnavailableError)
async def _storage_unavailable(request: Request, exc: StorageUnavailableError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_reader)) -> dict:
    return user


# ── Reader endpoints ─────────────────────────────────────────────────────


@app.get("/embeddings", response_model=list[Embedding])
def list_embeddings(
    user: dict = Depends(require_reader),
    service: EmbeddingsService = Depends(get_service),
) -> list[Embedding]:
    return service.get_all_embeddings()


@app.get("/embeddings/{embedding_id}", response_model=Embedding)
def get_embedding(
    embedding_id: str,
    user: dict = Depends(require_reader),
    service: EmbeddingsService = Depends(get_service),
) -> Embedding:
    embedding = service.get_embedding(embedding_id)
    if embedding is None:
        raise HTTPException(status_code=404, detail=f"Embedding {embedding_id} not found")
    return embedding


@app.post("/search", response_model=SearchResponse)
def search(
    body: SearchRequest,
    user: dict = Depends(require_reader),
    service: EmbeddingsService = Depends(get_service),
) -> SearchResponse:
    start_time = time.time()
    hits = service.search_semantic(body.query, limit=body.limit, min_similarity=body.min_similarity)
    total_candidates = service.get_stats().count
    elapsed_ms = round((time.time() - start_time) * 1000, 1)

    record_search(body.query, [h.similarity for h in hits], total_candidates, elapsed_ms)
    return SearchResponse(results=hits, total_candidates=total_candidates)


@app.get("/stats", response_model=EmbeddingStats)
def stats(
    user: dict = Depends(require_reader),
    service: EmbeddingsService = Depends(get_service),
) -> EmbeddingStats:
    return service.get_stats()


# ── Editor endpoints ─────────────────────────────────────────────────────


@app.post("/embeddings", response_model=StoreTextResponse, status_code=201)
def store_text(
    body: StoreTextRequest,
    user: dict = Depends(require_editor),
    service: EmbeddingsService = Depends(get_service),
) -> StoreTextResponse:
    embedding_id = service.store_text(body.content, body.metadata)
    record_event("store", {"id": embedding_id, "user": user["username"]})
    return StoreTextResponse(id=embedding_id)


@app.post("/embeddings/bulk", response_model=BulkStoreResponse, status_code=201)
def store_texts(
    body: BulkStoreRequest,
    user: dict = Depends(require_editor),
    service: EmbeddingsService = Depends(get_service),
) -> BulkStoreResponse:
    ids = service.store_texts((item.content, item.metadata) for item in body.items)
    for embedding_id in ids:
        record_event("store", {"id": embedding_id, "user": user["username"]})
    return BulkStoreResponse(ids=ids)


@app.put("/embeddings/{embedding_id}", response_model=Embedding)
def update_text(
    embedding_id: str,
    body: UpdateTextRequest,
    user: dict = Depends(require_editor),
    service: EmbeddingsService = Depends(get_service),
) -> Embedding:
    updated = service.update_text(embedding_id, body.content, body.metadata)
    record_event("update", {"id": embedding_id, "user": user["username"]})
    return updated


@app.delete("/embeddings/{embedding_id}", status_code=204)
def delete_text(
    embedding_id: str,
    user: dict = Depends(require_editor),
    service: EmbeddingsService = Depends(get_service),
) -> Response:
    service.delete_text(embedding_id)
    record_event("delete", {"id": embedding_id, "user": user["username"]})
    return Response(status_code=204)


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.delete("/embeddings", status_code=204)
def clear_all(
    user: dict = Depends(require_admin),
    service: EmbeddingsService = Depends(get_service),
) -> Response:
    service.clear_all()
    record_event("clear", {"user": user["username"]})
    return Response(status_code=204)


@app.post("/admin/reindex", response_model=ReindexResponse)
def reindex(
    user: dict = Depends(require_admin),
    service: EmbeddingsService = Depends(get_service),
) -> ReindexResponse:
    count = service.reindex()
    record_event("reindex", {"count": count, "user": user["username"]})
    return ReindexResponse(reindexed=count)


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
