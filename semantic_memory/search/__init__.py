"""
Semantic search service.

Responsibilities:
- Own the initialize-once lifecycle of the embedding store.
- Store, update and delete texts together with their vectors.
- Rank stored texts against a free-text query by cosine similarity.
"""
