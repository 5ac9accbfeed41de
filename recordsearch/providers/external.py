"""Adapter for third-party vector store clients with a compatible method set."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional

from ..constants import DEFAULT_ASK_K
from ..exceptions import IndexingError, ProviderError, RecordLookupError, SearchError
from .base import Answer, ChunkSink, SearchResult, VectorSearchProvider, check_lengths

LOGGER = logging.getLogger(__name__)

# Weaviate reports the object id as "__id" instead of "id".
_ID_FIELDS = ("id", "__id")
_DISTANCE_FIELDS = ("neighbor_distance", "distance")
_TEXT_FIELDS = ("content", "text", "page_content")


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _first_field(item: Any, names: Iterable[str]) -> Any:
    for name in names:
        value = _field(item, name)
        if value is not None:
            return value
    return None


def normalise_result(item: Any) -> SearchResult:
    """Map a native search hit onto :class:`SearchResult`."""

    identifier = _first_field(item, _ID_FIELDS)
    if identifier is None:
        raise RecordLookupError(f"Search result has none of the identifier fields {_ID_FIELDS}: {item!r}")
    distance = _first_field(item, _DISTANCE_FIELDS)
    if distance is None:
        additional = _field(item, "_additional")
        if additional is not None:
            distance = _field(additional, "distance")
    text = _first_field(item, _TEXT_FIELDS)
    return SearchResult(
        id=identifier,
        distance=float(distance) if distance is not None else None,
        text=str(text) if text is not None else None,
    )


class ExternalProvider(VectorSearchProvider):
    """Delegate to a client exposing ``add_texts``/``update_texts``/``similarity_search``/``ask``.

    The client is called with keyword arguments (``texts=``, ``ids=``,
    ``query=``, ``k=``, ``question=``). Its results may be mappings or
    objects; they are normalised before they reach the searchable model.
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    def _call(self, error_type: type[ProviderError], method: str, **kwargs: Any) -> Any:
        try:
            return getattr(self.client, method)(**kwargs)
        except Exception as exc:  # noqa: BLE001
            raise error_type(f"{type(self.client).__name__}.{method} failed: {exc}", cause=exc) from exc

    def add_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        check_lengths(texts, ids)
        self._call(IndexingError, "add_texts", texts=list(texts), ids=list(ids))

    def update_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        check_lengths(texts, ids)
        self._call(IndexingError, "update_texts", texts=list(texts), ids=list(ids))

    def similarity_search(self, query: str, *, k: int = 4) -> list[SearchResult]:
        raw = self._call(SearchError, "similarity_search", query=query, k=k)
        results = [normalise_result(item) for item in raw or []]
        LOGGER.debug("ExternalProvider search | client=%s k=%s results=%d", type(self.client).__name__, k, len(results))
        return results

    def ask(self, question: str, *, k: int = DEFAULT_ASK_K, on_chunk: Optional[ChunkSink] = None) -> Answer:
        kwargs: dict[str, Any] = {"question": question, "k": k}
        if on_chunk is not None:
            kwargs["on_chunk"] = on_chunk
        raw = self._call(SearchError, "ask", **kwargs)
        completion = _field(raw, "completion")
        if completion is None:
            raise SearchError(f"{type(self.client).__name__}.ask returned no completion: {raw!r}")
        return Answer(completion=str(completion))

    def create_default_schema(self) -> None:
        if hasattr(self.client, "create_default_schema"):
            self._call(IndexingError, "create_default_schema")

    def destroy_default_schema(self) -> None:
        if hasattr(self.client, "destroy_default_schema"):
            self._call(IndexingError, "destroy_default_schema")


__all__ = ["ExternalProvider", "normalise_result"]
