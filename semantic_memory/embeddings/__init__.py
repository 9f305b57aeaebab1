"""
Embeddings layer for semantic search.

Responsibilities:
- Turn free text into fixed-length unit vectors (hashing trick, no model).
- Optionally delegate to a sentence-transformer model behind the same contract.
- Score vectors with cosine similarity and rank candidates for retrieval.
"""
