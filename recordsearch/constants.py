"""Defaults for searchable model operations."""

DEFAULT_SIMILARITY_K = 1
DEFAULT_DISTANCE_MAX = 2.0
DEFAULT_ASK_K = 4
DEFAULT_NEIGHBORS_K = 5
DEFAULT_EMBEDDING_COLUMN = "embedding"

__all__ = [
    "DEFAULT_SIMILARITY_K",
    "DEFAULT_DISTANCE_MAX",
    "DEFAULT_ASK_K",
    "DEFAULT_NEIGHBORS_K",
    "DEFAULT_EMBEDDING_COLUMN",
]
