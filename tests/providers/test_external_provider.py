"""Normalising third-party vector store clients."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from recordsearch.exceptions import IndexingError, RecordLookupError, SearchError
from recordsearch.providers.external import ExternalProvider, normalise_result


class FakeClient:
    def __init__(self, results=(), completion="done") -> None:
        self.results = list(results)
        self.completion = completion
        self.calls: list[tuple[str, dict]] = []

    def add_texts(self, *, texts, ids):
        self.calls.append(("add_texts", {"texts": texts, "ids": ids}))

    def update_texts(self, *, texts, ids):
        self.calls.append(("update_texts", {"texts": texts, "ids": ids}))

    def similarity_search(self, *, query, k):
        self.calls.append(("similarity_search", {"query": query, "k": k}))
        return self.results

    def ask(self, *, question, k, on_chunk=None):
        self.calls.append(("ask", {"question": question, "k": k}))
        for piece in ("a", "b"):
            if on_chunk is not None:
                on_chunk(piece)
        return SimpleNamespace(completion=self.completion)


class BrokenClient(FakeClient):
    def add_texts(self, *, texts, ids):
        raise ConnectionError("index unavailable")

    def similarity_search(self, *, query, k):
        raise TimeoutError("search timed out")


def test_normalise_reads_id_and_neighbor_distance_from_objects() -> None:
    result = normalise_result(SimpleNamespace(id=5, neighbor_distance=0.25, content="text"))

    assert (result.id, result.distance, result.text) == (5, 0.25, "text")


def test_normalise_reads_weaviate_identifier_and_additional_distance() -> None:
    result = normalise_result({"__id": "abc", "_additional": {"distance": "0.75"}})

    assert result.id == "abc"
    assert result.distance == 0.75
    assert result.text is None


def test_normalise_rejects_results_without_identifier() -> None:
    with pytest.raises(RecordLookupError):
        normalise_result({"content": "orphan"})


def test_provider_forwards_calls_with_keywords() -> None:
    client = FakeClient(results=[{"id": 1, "distance": 0.1}, {"__id": 2}])
    provider = ExternalProvider(client)

    provider.add_texts(["t1"], [1])
    provider.update_texts(["t2"], [2])
    results = provider.similarity_search("query", k=2)

    assert [name for name, _ in client.calls] == ["add_texts", "update_texts", "similarity_search"]
    assert client.calls[0][1] == {"texts": ["t1"], "ids": [1]}
    assert client.calls[2][1] == {"query": "query", "k": 2}
    assert [(r.id, r.distance) for r in results] == [(1, 0.1), (2, None)]


def test_ask_returns_completion_and_forwards_chunks() -> None:
    provider = ExternalProvider(FakeClient(completion="final"))
    chunks: list[str] = []

    answer = provider.ask("why?", k=3, on_chunk=chunks.append)

    assert answer.completion == "final"
    assert chunks == ["a", "b"]


def test_ask_without_completion_is_a_search_error() -> None:
    provider = ExternalProvider(FakeClient(completion=None))

    with pytest.raises(SearchError):
        provider.ask("why?")


def test_client_failures_are_translated() -> None:
    provider = ExternalProvider(BrokenClient())

    with pytest.raises(IndexingError) as excinfo:
        provider.add_texts(["t"], [1])
    assert isinstance(excinfo.value.cause, ConnectionError)

    with pytest.raises(SearchError):
        provider.similarity_search("q")


def test_schema_calls_are_optional() -> None:
    provider = ExternalProvider(FakeClient())

    provider.create_default_schema()
    provider.destroy_default_schema()
