"""Embedding model client, similarity and the per-repository embedding store."""

from reposcope.embeddings.client import EmbeddingClient, EmbeddingError, validate_api_key
from reposcope.embeddings.similarity import cosine_similarity
from reposcope.embeddings.store import EmbeddingModel, EmbeddingStore

__all__ = [
    "EmbeddingClient",
    "EmbeddingError",
    "EmbeddingModel",
    "EmbeddingStore",
    "cosine_similarity",
    "validate_api_key",
]
