"""Vector search provider exports."""

from .base import Answer, ChunkSink, SearchResult, VectorSearchProvider
from .external import ExternalProvider
from .factory import create_provider
from .memory import MemoryProvider
from .pgvector import PgvectorProvider

__all__ = [
    "Answer",
    "ChunkSink",
    "SearchResult",
    "VectorSearchProvider",
    "ExternalProvider",
    "MemoryProvider",
    "PgvectorProvider",
    "create_provider",
]
