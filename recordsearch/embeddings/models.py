"""Catalogue of embedding models the Ollama backend is known to serve."""
from __future__ import annotations

DEFAULT_EMBEDDING_MODEL = "qwen3-embedding:0.6b"

MODEL_DIMENSIONS = {
    "qwen3-embedding:0.6b": 1024,
    "qwen3-embedding:4b": 2560,
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "embeddinggemma": 768,
}


def canonical_model_name(model_name: str | None) -> str | None:
    """Return the catalogue key for ``model_name``, or ``None`` if it is not listed.

    Matching ignores case and a trailing ``:latest`` tag.
    """

    if not model_name:
        return None
    key = model_name.strip().lower()
    if key.endswith(":latest"):
        key = key[: -len(":latest")]
    return key if key in MODEL_DIMENSIONS else None


def embedding_dimension_for_model(model_name: str | None) -> int:
    """Vector length produced by ``model_name``; unlisted models get the default model's."""

    key = canonical_model_name(model_name) or DEFAULT_EMBEDDING_MODEL
    return MODEL_DIMENSIONS[key]


__all__ = [
    "DEFAULT_EMBEDDING_MODEL",
    "MODEL_DIMENSIONS",
    "canonical_model_name",
    "embedding_dimension_for_model",
]
