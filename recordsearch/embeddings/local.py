"""Offline embedder based on feature hashing of the record text."""
from __future__ import annotations

import hashlib
import math
import re
from collections.abc import Sequence

from .base import EmbeddingClient, resolve_embedding_dimension

_TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


class LocalEmbeddingClient(EmbeddingClient):
    """Hash each lowercase word into a signed bucket and L2-normalise the counts.

    Texts sharing words end up close to each other, so similarity search
    behaves sensibly in development without a model server.
    """

    def __init__(self, *, dimension: int | None = None) -> None:
        if dimension is None:
            dimension = resolve_embedding_dimension()
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension
        self.model_name = "local-feature-hashing"

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        return [self._embed_text(text) for text in texts]

    def _embed_text(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for token in _TOKEN_PATTERN.findall(text.lower()):
            digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            vector[bucket] += 1.0 if digest[4] & 1 else -1.0
        norm = math.sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]


__all__ = ["LocalEmbeddingClient"]
