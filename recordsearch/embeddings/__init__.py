"""Embedding client exports."""

from .base import EmbeddingClient, resolve_embedding_dimension
from .factory import create_embedding_client
from .local import LocalEmbeddingClient
from .models import MODEL_DIMENSIONS, embedding_dimension_for_model
from .ollama import OllamaEmbeddingClient

__all__ = [
    "MODEL_DIMENSIONS",
    "EmbeddingClient",
    "LocalEmbeddingClient",
    "OllamaEmbeddingClient",
    "create_embedding_client",
    "embedding_dimension_for_model",
    "resolve_embedding_dimension",
]
