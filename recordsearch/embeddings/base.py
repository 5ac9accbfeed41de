"""Embedding client abstractions."""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..config import Settings, load_settings
from .models import embedding_dimension_for_model


def resolve_embedding_dimension(settings: Settings | None = None) -> int:
    """Length of the vectors stored for searchable records.

    ``llm.embedding_dimension`` wins when set, otherwise the configured
    embedding model decides.
    """

    settings = settings or load_settings()
    if settings.llm.embedding_dimension:
        return settings.llm.embedding_dimension
    return embedding_dimension_for_model(settings.llm.embedding_model)


class EmbeddingClient(ABC):
    """Interface for text embedding providers."""

    model_name: str

    @abstractmethod
    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Return one embedding per text, in input order."""

    def embed_one(self, text: str) -> list[float]:
        return self.embed([text])[0]


__all__ = ["EmbeddingClient", "resolve_embedding_dimension"]
