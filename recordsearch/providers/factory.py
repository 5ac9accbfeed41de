"""Factory helpers for vector search providers."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings
from ..database import configure_engine
from ..embeddings.base import EmbeddingClient
from ..embeddings.factory import create_embedding_client
from ..llm.base import LLMClient
from ..llm.factory import create_llm_client
from .base import VectorSearchProvider
from .memory import MemoryProvider
from .pgvector import PgvectorProvider

LOGGER = logging.getLogger(__name__)


def create_provider(
    settings: Settings,
    *,
    session_factory: sessionmaker[Session] | None = None,
    embedder: EmbeddingClient | None = None,
    llm: LLMClient | None = None,
) -> VectorSearchProvider:
    """Create the vector search provider selected in the settings."""

    embedder = embedder or create_embedding_client(settings)
    llm = llm or create_llm_client(settings)
    search_settings = settings.vectorsearch
    LOGGER.info(
        "Creating vector search provider | provider=%s embed_model=%s",
        search_settings.provider,
        getattr(embedder, "model_name", None),
    )
    if search_settings.provider == "pgvector":
        return PgvectorProvider(
            session_factory or configure_engine(settings),
            embedder,
            llm,
            column=search_settings.embedding_column,
            distance=search_settings.distance,
        )
    return MemoryProvider(embedder, llm)


__all__ = ["create_provider"]
