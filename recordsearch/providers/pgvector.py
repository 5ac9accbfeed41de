"""Vector search provider backed by a pgvector column on the model's own table."""
from __future__ import annotations

import copy
import logging
from collections.abc import Sequence
from time import perf_counter
from typing import Any, Literal, Optional

from pgvector.sqlalchemy import Vector
from sqlalchemy import Select, inspect as sa_inspect, select, text, update
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from ..constants import DEFAULT_ASK_K, DEFAULT_EMBEDDING_COLUMN
from ..embeddings.base import EmbeddingClient
from ..exceptions import ConfigurationError, IndexingError, SearchError
from ..llm.base import LLMClient
from .base import Answer, ChunkSink, SearchResult, VectorSearchProvider, answer_from_context, check_lengths

LOGGER = logging.getLogger(__name__)

DistanceMetric = Literal["cosine", "euclidean", "inner_product"]


def distance_expression(column: Any, vector: Sequence[float], metric: DistanceMetric) -> ColumnElement[float]:
    """Build the pgvector distance operator for ``metric`` between ``column`` and ``vector``."""

    if metric == "cosine":
        return column.cosine_distance(vector)
    if metric == "euclidean":
        return column.l2_distance(vector)
    if metric == "inner_product":
        return column.max_inner_product(vector)
    raise ValueError(f"Unsupported distance metric: {metric}")


class PgvectorProvider(VectorSearchProvider):
    """Write embeddings into the bound model's vector column and query it with pgvector."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        embedder: EmbeddingClient,
        llm: LLMClient | None = None,
        *,
        column: str = DEFAULT_EMBEDDING_COLUMN,
        distance: DistanceMetric = "cosine",
    ) -> None:
        self.session_factory = session_factory
        self.embedder = embedder
        self.llm = llm
        self.column = column
        self.distance = distance
        self.model: type | None = None

    @property
    def neighbor_column(self) -> str | None:  # type: ignore[override]
        return self.column if self.model is not None else None

    def bind_model(self, model: type) -> "PgvectorProvider":
        """Return a copy of this provider bound to ``model``'s vector column."""

        try:
            mapper = sa_inspect(model)
        except NoInspectionAvailable as exc:
            raise ConfigurationError(f"{model.__name__} is not a mapped class") from exc
        columns = mapper.columns
        if self.column not in columns:
            raise ConfigurationError(
                f"{model.__name__} has no '{self.column}' column; pgvector search needs a Vector column"
            )
        if not isinstance(columns[self.column].type, Vector):
            raise ConfigurationError(f"{model.__name__}.{self.column} must be a pgvector Vector column")
        if len(mapper.primary_key) != 1:
            raise ConfigurationError(f"{model.__name__} must have a single-column primary key")
        bound = copy.copy(self)
        bound.model = model
        LOGGER.info("PgvectorProvider bound | model=%s column=%s distance=%s", model.__name__, self.column, self.distance)
        return bound

    def _require_model(self) -> type:
        if self.model is None:
            raise ConfigurationError("PgvectorProvider is not bound to a model; declare vectorsearch() first")
        return self.model

    def _primary_key(self, model: type) -> Any:
        return getattr(model, sa_inspect(model).primary_key[0].key)

    def add_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        self._write_embeddings(texts, ids)

    def update_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        self._write_embeddings(texts, ids)

    def _write_embeddings(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        model = self._require_model()
        check_lengths(texts, ids)
        start = perf_counter()
        try:
            vectors = self.embedder.embed(list(texts))
        except Exception as exc:  # noqa: BLE001
            raise IndexingError(f"Failed to embed {len(texts)} texts: {exc}", cause=exc) from exc
        primary_key = self._primary_key(model)
        try:
            with self.session_factory() as session:
                for record_id, vector in zip(ids, vectors):
                    stmt = update(model).where(primary_key == record_id).values({self.column: vector})
                    result = session.execute(stmt)
                    if result.rowcount == 0:
                        raise IndexingError(f"No {model.__name__} row with id {record_id!r} to store an embedding on")
                session.commit()
        except SQLAlchemyError as exc:
            raise IndexingError(f"Failed to store embeddings for {model.__name__}: {exc}", cause=exc) from exc
        LOGGER.info(
            "PgvectorProvider indexed | model=%s records=%d embed_model=%s duration=%.3fs",
            model.__name__,
            len(ids),
            getattr(self.embedder, "model_name", None),
            perf_counter() - start,
        )

    def search_statement(self, vector: Sequence[float], k: int) -> Select[Any]:
        """Select ``(id, distance)`` rows for the ``k`` nearest embedded records."""

        model = self._require_model()
        column = getattr(model, self.column)
        distance = distance_expression(column, vector, self.distance).label("distance")
        return (
            select(self._primary_key(model), distance)
            .where(column.isnot(None))
            .order_by(distance)
            .limit(k)
        )

    def similarity_search(self, query: str, *, k: int = 4) -> list[SearchResult]:
        overall_start = perf_counter()
        try:
            query_vector = self.embedder.embed_one(query)
        except Exception as exc:  # noqa: BLE001
            raise SearchError(f"Failed to embed query: {exc}", cause=exc) from exc
        embed_time = perf_counter() - overall_start
        stmt = self.search_statement(query_vector, k)
        try:
            with self.session_factory() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as exc:
            raise SearchError(f"Similarity search failed: {exc}", cause=exc) from exc
        results = [
            SearchResult(id=record_id, distance=float(distance) if distance is not None else None)
            for record_id, distance in rows
        ]
        LOGGER.info(
            "PgvectorProvider search | k=%s results=%d embed_time=%.3fs total_time=%.3fs",
            k,
            len(results),
            embed_time,
            perf_counter() - overall_start,
        )
        return results

    def ask(self, question: str, *, k: int = DEFAULT_ASK_K, on_chunk: Optional[ChunkSink] = None) -> Answer:
        model = self._require_model()
        results = self.similarity_search(question, k=k)
        ids = [result.id for result in results]
        try:
            with self.session_factory() as session:
                records = session.scalars(select(model).where(self._primary_key(model).in_(ids))).all()
                by_id = {sa_inspect(record).identity[0]: record for record in records}
                context = [by_id[record_id].as_vector() for record_id in ids if record_id in by_id]
        except SQLAlchemyError as exc:
            raise SearchError(f"Failed to load context records: {exc}", cause=exc) from exc
        return answer_from_context(self.llm, question, context, on_chunk)

    def create_default_schema(self) -> None:
        model = self._require_model()
        with self.session_factory.begin() as session:
            session.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            model.__table__.create(session.connection(), checkfirst=True)

    def destroy_default_schema(self) -> None:
        model = self._require_model()
        with self.session_factory.begin() as session:
            model.__table__.drop(session.connection(), checkfirst=True)


__all__ = ["PgvectorProvider", "distance_expression", "DistanceMetric"]
