"""Per-model vector search configuration and the operations built on it."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Literal, Optional

from sqlalchemy import Select, inspect as sa_inspect, select
from sqlalchemy.orm import Session

from .constants import DEFAULT_ASK_K, DEFAULT_DISTANCE_MAX, DEFAULT_NEIGHBORS_K, DEFAULT_SIMILARITY_K
from .exceptions import ConfigurationError, IndexingError
from .providers.base import ChunkSink, VectorSearchProvider
from .providers.pgvector import DistanceMetric, distance_expression

LOGGER = logging.getLogger(__name__)

OnError = Literal["raise", "collect"]


@dataclass(slots=True)
class EmbedReport:
    """Outcome of re-embedding every record of a model."""

    indexed: int = 0
    failed: list[tuple[Any, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class SearchBinding:
    """Binds a mapped model to the vector search provider it indexes into.

    A binding is created once per model by ``vectorsearch()``. All searchable
    operations read their provider and defaults from it, so it can also be
    built and used directly without going through the model class.
    """

    model: type
    provider: VectorSearchProvider
    index_on_commit: bool = True
    batch_size: int = 1000
    on_error: OnError = "raise"
    neighbor_column: str | None = None
    id_key: str = field(init=False)

    def __post_init__(self) -> None:
        primary_key = sa_inspect(self.model).primary_key
        if len(primary_key) != 1:
            raise ConfigurationError(f"{self.model.__name__} must have a single-column primary key")
        object.__setattr__(self, "id_key", sa_inspect(self.model).get_property_by_column(primary_key[0]).key)

    @property
    def id_attribute(self) -> Any:
        return getattr(self.model, self.id_key)

    def record_id(self, record: Any) -> Any:
        return getattr(record, self.id_key)

    def index(self, texts: Sequence[str], ids: Sequence[Any], *, created: bool) -> None:
        """Send texts to the provider: new records are added, known records updated."""

        if created:
            self.provider.add_texts(texts, ids)
        else:
            self.provider.update_texts(texts, ids)

    def upsert(self, record: Any, *, created: bool) -> bool:
        """Index ``record.as_vector()`` under the record's id."""

        record_id = self.record_id(record)
        if record_id is None:
            raise IndexingError(f"{self.model.__name__} record has no id yet; flush it before indexing")
        self.index([record.as_vector()], [record_id], created=created)
        LOGGER.debug(
            "Record upserted | model=%s id=%s operation=%s",
            self.model.__name__,
            record_id,
            "add" if created else "update",
        )
        return True

    def embed_all(
        self,
        session: Session,
        *,
        batch_size: int | None = None,
        on_error: OnError | None = None,
    ) -> EmbedReport:
        """Re-index every record of the model, whether or not it was indexed before."""

        size = batch_size or self.batch_size
        policy = on_error or self.on_error
        report = EmbedReport()
        start = perf_counter()
        LOGGER.info("Embedding all records | model=%s batch_size=%d on_error=%s", self.model.__name__, size, policy)
        stmt = select(self.model).order_by(self.id_attribute).execution_options(yield_per=size)
        for record in session.scalars(stmt):
            try:
                self.upsert(record, created=False)
            except IndexingError as exc:
                if policy == "raise":
                    LOGGER.error(
                        "Embedding aborted | model=%s id=%s indexed=%d",
                        self.model.__name__,
                        self.record_id(record),
                        report.indexed,
                    )
                    raise
                LOGGER.warning("Embedding failed | model=%s id=%s error=%s", self.model.__name__, self.record_id(record), exc)
                report.failed.append((self.record_id(record), exc))
                continue
            report.indexed += 1
            if report.indexed % size == 0:
                LOGGER.info("Embedding progress | model=%s indexed=%d", self.model.__name__, report.indexed)
        LOGGER.info(
            "Embedding finished | model=%s indexed=%d failed=%d duration=%.2fs",
            self.model.__name__,
            report.indexed,
            len(report.failed),
            perf_counter() - start,
        )
        return report

    def similarity_search(self, query: str, *, k: int = DEFAULT_SIMILARITY_K, **wheres: Any) -> Select[Any]:
        """Return a select of the records nearest to ``query``, narrowed by equality filters."""

        results = self.provider.similarity_search(query, k=k)
        ids = [result.id for result in results]
        LOGGER.debug("Similarity search | model=%s k=%s ids=%s", self.model.__name__, k, ids)
        return self._records(ids, wheres)

    def similarity_search_with_distance(
        self,
        query: str,
        *,
        k: int = DEFAULT_SIMILARITY_K,
        distance_max: float = DEFAULT_DISTANCE_MAX,
        **wheres: Any,
    ) -> tuple[Select[Any], dict[Any, float | None]]:
        """Like :meth:`similarity_search`, dropping hits farther than ``distance_max``."""

        results = self.provider.similarity_search(query, k=k)
        kept = [result for result in results if result.distance is None or result.distance <= distance_max]
        distances = {result.id: result.distance for result in kept}
        LOGGER.debug(
            "Similarity search with distance | model=%s k=%s kept=%d dropped=%d",
            self.model.__name__,
            k,
            len(kept),
            len(results) - len(kept),
        )
        return self._records(list(distances), wheres), distances

    def _records(self, ids: list[Any], wheres: dict[str, Any]) -> Select[Any]:
        stmt = select(self.model).where(self.id_attribute.in_(ids))
        if wheres:
            stmt = stmt.filter_by(**wheres)
        return stmt

    def ask(self, question: str, *, k: int = DEFAULT_ASK_K, on_chunk: Optional[ChunkSink] = None) -> str:
        return self.provider.ask(question, k=k, on_chunk=on_chunk).completion

    def nearest_neighbors(
        self,
        vector: Sequence[float],
        *,
        k: int = DEFAULT_NEIGHBORS_K,
        distance: DistanceMetric | None = None,
    ) -> Select[Any]:
        """Select the ``k`` records whose stored embedding is nearest to ``vector``."""

        if self.neighbor_column is None:
            raise ConfigurationError(
                f"{self.model.__name__} has no neighbor column; nearest_neighbors() needs a pgvector provider"
            )
        column = getattr(self.model, self.neighbor_column)
        metric = distance or getattr(self.provider, "distance", "cosine")
        return (
            select(self.model)
            .where(column.isnot(None))
            .order_by(distance_expression(column, vector, metric))
            .limit(k)
        )


__all__ = ["EmbedReport", "OnError", "SearchBinding"]
