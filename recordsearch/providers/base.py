"""Abstract interface for vector search providers."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Optional

from ..constants import DEFAULT_ASK_K
from ..exceptions import ConfigurationError, SearchError
from ..llm.base import LLMClient, LLMError

LOGGER = logging.getLogger(__name__)

ChunkSink = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Canonical search hit: the indexed record id plus its distance to the query."""

    id: Any
    distance: float | None = None
    text: str | None = None


@dataclass(frozen=True, slots=True)
class Answer:
    """Completion produced by a provider for a question over indexed texts."""

    completion: str
    context: tuple[str, ...] = ()


class VectorSearchProvider(ABC):
    """Index texts under record ids and search them by semantic similarity.

    Adapters translate their native failures into ``IndexingError`` or
    ``SearchError`` and their native result shapes into ``SearchResult``.
    """

    #: Name of the model column that holds embeddings, for providers that
    #: store vectors alongside the record.
    neighbor_column: str | None = None

    @abstractmethod
    def add_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        """Index new texts under the given record ids."""

    @abstractmethod
    def update_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        """Replace the indexed texts of existing record ids."""

    @abstractmethod
    def similarity_search(self, query: str, *, k: int = 4) -> list[SearchResult]:
        """Return the ``k`` indexed entries closest to ``query``, nearest first."""

    @abstractmethod
    def ask(self, question: str, *, k: int = DEFAULT_ASK_K, on_chunk: Optional[ChunkSink] = None) -> Answer:
        """Answer ``question`` from the ``k`` nearest indexed texts."""

    def bind_model(self, model: type) -> "VectorSearchProvider":
        """Return the provider a searchable model should use.

        Providers that do not depend on the model's schema return themselves.
        """

        return self

    def create_default_schema(self) -> None:
        """Create whatever storage the provider needs before indexing."""

    def destroy_default_schema(self) -> None:
        """Drop the storage created by :meth:`create_default_schema`."""


def check_lengths(texts: Sequence[str], ids: Sequence[Any]) -> None:
    if len(texts) != len(ids):
        raise ValueError(f"Got {len(texts)} texts for {len(ids)} ids")


def answer_from_context(
    llm: LLMClient | None,
    question: str,
    context: Sequence[str],
    on_chunk: Optional[ChunkSink] = None,
) -> Answer:
    """Stream an LLM completion over ``context``, forwarding chunks to ``on_chunk``."""

    if llm is None:
        raise ConfigurationError("This provider has no LLM client configured; ask() is unavailable")
    pieces: list[str] = []
    try:
        for piece in llm.generate(question, context=list(context)):
            pieces.append(piece)
            if on_chunk is not None:
                on_chunk(piece)
    except LLMError as exc:
        raise SearchError(f"Failed to generate an answer: {exc}", cause=exc) from exc
    LOGGER.debug("Answer generated | context_records=%d chunks=%d", len(context), len(pieces))
    return Answer(completion="".join(pieces), context=tuple(context))


__all__ = [
    "Answer",
    "ChunkSink",
    "SearchResult",
    "VectorSearchProvider",
    "answer_from_context",
    "check_lengths",
]
