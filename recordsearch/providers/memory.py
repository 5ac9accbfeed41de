"""In-process vector search provider."""
from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from ..constants import DEFAULT_ASK_K
from ..embeddings.base import EmbeddingClient
from ..exceptions import IndexingError, SearchError
from ..llm.base import LLMClient
from .base import Answer, ChunkSink, SearchResult, VectorSearchProvider, answer_from_context, check_lengths

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    text: str
    vector: list[float]


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``1 - cosine_similarity``; zero vectors are at distance 1."""

    if len(a) != len(b):
        raise ValueError(f"Vector dimensions differ: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 1.0
    return 1.0 - dot / (norm_a * norm_b)


class MemoryProvider(VectorSearchProvider):
    """Keep embeddings in a dict and rank them by cosine distance.

    Meant for development and tests; nothing is persisted and the index is
    not safe to share between threads.
    """

    def __init__(self, embedder: EmbeddingClient, llm: LLMClient | None = None) -> None:
        self.embedder = embedder
        self.llm = llm
        self._entries: dict[Any, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._entries

    def text_for(self, record_id: Any) -> str | None:
        entry = self._entries.get(record_id)
        return entry.text if entry else None

    def add_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        self._store(texts, ids)

    def update_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        self._store(texts, ids)

    def _store(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        check_lengths(texts, ids)
        try:
            vectors = self.embedder.embed(list(texts))
        except Exception as exc:  # noqa: BLE001
            raise IndexingError(f"Failed to embed {len(texts)} texts: {exc}", cause=exc) from exc
        for record_id, text, vector in zip(ids, texts, vectors):
            self._entries[record_id] = _Entry(text=text, vector=vector)
        LOGGER.debug("MemoryProvider indexed | ids=%s size=%d", list(ids), len(self._entries))

    def similarity_search(self, query: str, *, k: int = 4) -> list[SearchResult]:
        try:
            query_vector = self.embedder.embed_one(query)
        except Exception as exc:  # noqa: BLE001
            raise SearchError(f"Failed to embed query: {exc}", cause=exc) from exc
        scored = [
            SearchResult(id=record_id, distance=cosine_distance(query_vector, entry.vector), text=entry.text)
            for record_id, entry in self._entries.items()
        ]
        scored.sort(key=lambda result: result.distance)
        return scored[:k]

    def ask(self, question: str, *, k: int = DEFAULT_ASK_K, on_chunk: Optional[ChunkSink] = None) -> Answer:
        results = self.similarity_search(question, k=k)
        context = [result.text for result in results if result.text]
        return answer_from_context(self.llm, question, context, on_chunk)

    def destroy_default_schema(self) -> None:
        self._entries.clear()


__all__ = ["MemoryProvider", "cosine_distance"]
