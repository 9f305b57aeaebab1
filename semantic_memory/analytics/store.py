from __future__ import annotations

import time
from collections import deque
from typing import Any

# Oldest events fall off once the log is full
MAX_EVENTS = 10_000

_events: deque[dict[str, Any]] = deque(maxlen=MAX_EVENTS)


def record_event(event_type: str, data: dict[str, Any] | None = None) -> None:
    _events.append({"type": event_type, "timestamp": time.time(), **(data or {})})


def record_search(query: str, similarities: list[float], total_candidates: int, response_time_ms: float) -> None:
    record_event("search", {
        "query": query,
        "results_returned": len(similarities),
        "total_candidates": total_candidates,
        "top_similarity": max(similarities) if similarities else None,
        "response_time_ms": response_time_ms,
    })


def get_events() -> list[dict[str, Any]]:
    return list(_events)


def clear_events() -> None:
    _events.clear()
