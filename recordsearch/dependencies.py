"""Process-wide defaults used when a model declares vectorsearch() without arguments."""
from __future__ import annotations

from functools import lru_cache

from .config import Settings, load_settings
from .database import SessionFactory, configure_engine
from .providers.base import VectorSearchProvider
from .providers.factory import create_provider


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return load_settings()


def get_session_factory() -> SessionFactory:
    """Initialise the session factory based on configuration."""

    return configure_engine(get_settings())


@lru_cache()
def get_provider() -> VectorSearchProvider:
    """Return the shared provider built from settings."""

    settings = get_settings()
    session_factory = get_session_factory() if settings.vectorsearch.provider == "pgvector" else None
    return create_provider(settings, session_factory=session_factory)


__all__ = ["get_settings", "get_session_factory", "get_provider"]
