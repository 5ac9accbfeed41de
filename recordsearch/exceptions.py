"""Shared exception hierarchy for searchable records and their providers."""
from __future__ import annotations

from typing import Optional


class RecordSearchError(Exception):
    """Base exception for vector search failures."""


class ConfigurationError(RecordSearchError):
    """Raised when a model or provider is wired up incorrectly."""


class ProviderNotConfiguredError(ConfigurationError):
    """Raised when a model is used before it declared a vector search provider."""


class ProviderError(RecordSearchError):
    """Raised when a call into the vector search provider fails."""

    def __init__(self, message: str, *, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class IndexingError(ProviderError):
    """Raised when texts could not be added to or updated in the index."""


class SearchError(ProviderError):
    """Raised when a similarity search or question could not be answered."""


class RecordLookupError(RecordSearchError):
    """Raised when a provider result cannot be resolved to a record identifier."""


__all__ = [
    "RecordSearchError",
    "ConfigurationError",
    "ProviderNotConfiguredError",
    "ProviderError",
    "IndexingError",
    "SearchError",
    "RecordLookupError",
]
