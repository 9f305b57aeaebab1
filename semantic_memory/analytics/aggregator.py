from __future__ import annotations

from collections import Counter
from typing import Any

MUTATION_EVENTS = ("store", "update", "delete", "clear", "reindex")


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    total = len(searches)

    # Average response time
    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Result volume
    returned = [s.get("results_returned", 0) for s in searches]
    avg_results = round(sum(returned) / total, 2) if total else 0.0
    zero_results = sum(1 for r in returned if r == 0)

    # Top queries, case-insensitive
    query_counter: Counter[str] = Counter()
    for s in searches:
        query = (s.get("query") or "").strip().lower()
        if query:
            query_counter[query] += 1
    top_queries = [{"query": q, "count": c} for q, c in query_counter.most_common(10)]

    # Best similarity seen per search
    best = [s["top_similarity"] for s in searches if s.get("top_similarity") is not None]
    avg_top_similarity = round(sum(best) / len(best), 4) if best else 0.0

    mutation_counter = Counter(e["type"] for e in events if e["type"] in MUTATION_EVENTS)
    mutations = {name: mutation_counter.get(name, 0) for name in MUTATION_EVENTS}

    return {
        "total_searches": total,
        "avg_response_time_ms": avg_time,
        "avg_results_returned": avg_results,
        "zero_result_rate": round(zero_results / total * 100, 1) if total else 0.0,
        "avg_top_similarity": avg_top_similarity,
        "top_queries": top_queries,
        "mutations": mutations,
    }
