"""Embedding client backed by the Ollama embed API."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from time import perf_counter

from ollama import Client, ResponseError

from .base import EmbeddingClient, resolve_embedding_dimension

LOGGER = logging.getLogger(__name__)


def _normalise_dimension(vector: Sequence[float], dimension: int) -> list[float]:
    """Pad with zeros or truncate so the vector fits the stored column."""

    values = [float(value) for value in vector]
    if len(values) > dimension:
        LOGGER.debug("Truncating embedding from %s to %s dimensions", len(values), dimension)
        return values[:dimension]
    if len(values) < dimension:
        LOGGER.debug("Padding embedding from %s to %s dimensions", len(values), dimension)
        values.extend([0.0] * (dimension - len(values)))
    return values


class OllamaEmbeddingClient(EmbeddingClient):
    """Embed record texts in batches through an Ollama server."""

    def __init__(
        self,
        *,
        host: str,
        model_name: str,
        request_timeout: int,
        dimension: int | None = None,
        client: Client | None = None,
    ) -> None:
        self.model_name = model_name
        self.dimension = resolve_embedding_dimension() if dimension is None else dimension
        self._client = client or Client(host=host.rstrip("/"), timeout=request_timeout)

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        start = perf_counter()
        try:
            response = self._client.embed(model=self.model_name, input=list(texts))
        except ResponseError as exc:
            if "context length" in str(exc).lower():
                longest = max(len(text.split()) for text in texts)
                raise RuntimeError(
                    f"Ollama model {self.model_name} rejected a record text longer than its context window "
                    f"(longest text has about {longest} words). Override as_vector() to index a shorter text."
                ) from exc
            raise
        vectors = response["embeddings"]
        if len(vectors) != len(texts):
            raise RuntimeError(f"Ollama returned {len(vectors)} embeddings for {len(texts)} texts")
        LOGGER.debug(
            "Ollama embed finished | model=%s texts=%d duration=%.3fs",
            self.model_name,
            len(texts),
            perf_counter() - start,
        )
        return [_normalise_dimension(vector, self.dimension) for vector in vectors]


__all__ = ["OllamaEmbeddingClient"]
