"""Vector similarity search for SQLAlchemy models."""

from .binding import EmbedReport, SearchBinding
from .exceptions import (
    ConfigurationError,
    IndexingError,
    ProviderError,
    ProviderNotConfiguredError,
    RecordLookupError,
    RecordSearchError,
    SearchError,
)
from .hooks import SearchableMixin
from .providers import (
    Answer,
    ExternalProvider,
    MemoryProvider,
    PgvectorProvider,
    SearchResult,
    VectorSearchProvider,
    create_provider,
)

__version__ = "0.1.0"

__all__ = [
    "Answer",
    "ConfigurationError",
    "EmbedReport",
    "ExternalProvider",
    "IndexingError",
    "MemoryProvider",
    "PgvectorProvider",
    "ProviderError",
    "ProviderNotConfiguredError",
    "RecordLookupError",
    "RecordSearchError",
    "SearchBinding",
    "SearchError",
    "SearchResult",
    "SearchableMixin",
    "VectorSearchProvider",
    "create_provider",
]
