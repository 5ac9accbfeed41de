"""Factory helpers for embedding clients."""
from __future__ import annotations

import logging

from ..config import Settings
from .base import EmbeddingClient, resolve_embedding_dimension
from .local import LocalEmbeddingClient
from .models import DEFAULT_EMBEDDING_MODEL, canonical_model_name, embedding_dimension_for_model
from .ollama import OllamaEmbeddingClient

LOGGER = logging.getLogger(__name__)


def create_embedding_client(settings: Settings) -> EmbeddingClient:
    """Create the embedder selected by ``llm.embedding_provider``."""

    dimension = resolve_embedding_dimension(settings)
    if settings.llm.embedding_provider == "local":
        return LocalEmbeddingClient(dimension=dimension)

    model_name = canonical_model_name(settings.llm.embedding_model)
    if model_name is None:
        LOGGER.warning(
            "Unsupported Ollama embedding model '%s'. Falling back to %s.",
            settings.llm.embedding_model,
            DEFAULT_EMBEDDING_MODEL,
        )
        model_name = DEFAULT_EMBEDDING_MODEL
        dimension = settings.llm.embedding_dimension or embedding_dimension_for_model(model_name)
    return OllamaEmbeddingClient(
        host=settings.llm.ollama_host,
        model_name=model_name,
        request_timeout=settings.llm.request_timeout,
        dimension=dimension,
    )


__all__ = ["create_embedding_client"]
