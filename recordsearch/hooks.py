"""Mixin that makes SQLAlchemy models searchable through a vector search provider.

Usage::

    class Recipe(SearchableMixin, Base):
        __tablename__ = "recipes"

        id: Mapped[int] = mapped_column(primary_key=True)
        title: Mapped[str]
        description: Mapped[str]

        # Override how the record is serialized before it is indexed
        def as_vector(self) -> str:
            return f"Title: {self.title}\\nDescription: {self.description}"

    Recipe.vectorsearch()

    # Query the provider
    session.scalars(Recipe.similarity_search("carnivore dish", k=3))
    # Create or drop the provider's storage
    Recipe.search_binding().provider.create_default_schema()
"""
from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import Select, event, inspect as sa_inspect
from sqlalchemy.orm import Session, SessionTransaction, object_session

from .binding import EmbedReport, OnError, SearchBinding
from .constants import DEFAULT_ASK_K, DEFAULT_DISTANCE_MAX, DEFAULT_NEIGHBORS_K, DEFAULT_SIMILARITY_K
from .dependencies import get_provider, get_settings
from .exceptions import IndexingError, ProviderNotConfiguredError
from .providers.base import ChunkSink, VectorSearchProvider
from .providers.pgvector import DistanceMetric

LOGGER = logging.getLogger(__name__)

_FLUSHED_KEY = "recordsearch.flushed"
_PENDING_KEY = "recordsearch.pending"
_COMMITTED_KEY = "recordsearch.committed"


class SearchableMixin:
    """Adds vector search class methods and indexing hooks to a mapped model."""

    __search_binding__ = None
    # Attributes left out of the default as_vector(); a stored embedding
    # must never feed back into the text it was computed from.
    __vector_exclude__ = ("embedding",)
    _previously_new_record = False

    @classmethod
    def vectorsearch(
        cls,
        provider: VectorSearchProvider | None = None,
        *,
        index_on_commit: bool | None = None,
        batch_size: int | None = None,
        on_error: OnError | None = None,
    ) -> SearchBinding:
        """Set the vector search provider for this model.

        Without an explicit provider the process-wide default from settings is
        used. Declaring again replaces the previous binding.
        """

        settings = get_settings()
        bound = (provider or get_provider()).bind_model(cls)
        binding = SearchBinding(
            model=cls,
            provider=bound,
            index_on_commit=settings.vectorsearch.index_on_commit if index_on_commit is None else index_on_commit,
            batch_size=batch_size or settings.embed.batch_size,
            on_error=on_error or settings.embed.on_error,
            neighbor_column=bound.neighbor_column,
        )
        if cls.__dict__.get("__search_binding__") is not None:
            LOGGER.info("Replacing vector search provider | model=%s", cls.__name__)
        cls.__search_binding__ = binding
        LOGGER.info(
            "Vector search declared | model=%s provider=%s index_on_commit=%s",
            cls.__name__,
            type(bound).__name__,
            binding.index_on_commit,
        )
        return binding

    @classmethod
    def search_binding(cls) -> SearchBinding:
        binding = cls.__search_binding__
        if binding is None:
            raise ProviderNotConfiguredError(f"{cls.__name__} has not declared vectorsearch()")
        return binding

    @classmethod
    def embed_all(
        cls,
        session: Session,
        *,
        batch_size: int | None = None,
        on_error: OnError | None = None,
    ) -> EmbedReport:
        """Re-generate embeddings for ALL records, not only the ones missing one."""

        return cls.search_binding().embed_all(session, batch_size=batch_size, on_error=on_error)

    @classmethod
    def similarity_search(cls, query: str, *, k: int = DEFAULT_SIMILARITY_K, **wheres: Any) -> Select[Any]:
        return cls.search_binding().similarity_search(query, k=k, **wheres)

    @classmethod
    def similarity_search_with_distance(
        cls,
        query: str,
        *,
        k: int = DEFAULT_SIMILARITY_K,
        distance_max: float = DEFAULT_DISTANCE_MAX,
        **wheres: Any,
    ) -> tuple[Select[Any], dict[Any, float | None]]:
        return cls.search_binding().similarity_search_with_distance(query, k=k, distance_max=distance_max, **wheres)

    @classmethod
    def ask(cls, question: str, *, k: int = DEFAULT_ASK_K, on_chunk: Optional[ChunkSink] = None) -> str:
        """Answer a question from the ``k`` most similar records.

        ``on_chunk`` receives the answer text piece by piece as it streams.
        """

        return cls.search_binding().ask(question, k=k, on_chunk=on_chunk)

    @classmethod
    def nearest_neighbors(
        cls,
        vector: Sequence[float],
        *,
        k: int = DEFAULT_NEIGHBORS_K,
        distance: DistanceMetric | None = None,
    ) -> Select[Any]:
        return cls.search_binding().nearest_neighbors(vector, k=k, distance=distance)

    def as_vector(self) -> str:
        """Serialize the record to the text that gets embedded.

        Override in the model to customise what is indexed.
        """

        excluded = set(self.__vector_exclude__)
        binding = type(self).__search_binding__
        if binding is not None and binding.neighbor_column:
            excluded.add(binding.neighbor_column)
        payload = {
            attribute.key: getattr(self, attribute.key)
            for attribute in sa_inspect(type(self)).column_attrs
            if attribute.key not in excluded
        }
        return json.dumps(payload, default=str, ensure_ascii=False)

    def previously_new_record(self) -> bool:
        """Whether the most recent flush of this record inserted it."""

        return self._previously_new_record

    def upsert_to_vectorsearch(self) -> bool:
        """Index the record: added if its last flush created it, updated otherwise."""

        return type(self).search_binding().upsert(self, created=self.previously_new_record())


@dataclass(slots=True)
class _PendingUpsert:
    binding: SearchBinding
    record_id: Any
    # None marks a delete of the record.
    text: str | None
    created: bool
    transaction: SessionTransaction


def _queue_flushed(target: SearchableMixin, operation: str) -> None:
    session = object_session(target)
    if session is None:
        return
    session.info.setdefault(_FLUSHED_KEY, []).append((target, operation))


def _opened_within(transaction: SessionTransaction | None, savepoint: SessionTransaction) -> bool:
    while transaction is not None:
        if transaction is savepoint:
            return True
        transaction = transaction.parent
    return False


def _merge_pending(items: list[_PendingUpsert]) -> list[_PendingUpsert]:
    """Collapse the flushes of one transaction into a single write per record."""

    merged: dict[tuple[type, Any], _PendingUpsert] = {}
    for item in items:
        key = (item.binding.model, item.record_id)
        previous = merged.pop(key, None)
        if item.text is None:
            continue
        if previous is not None and previous.created:
            item.created = True
        merged[key] = item
    return list(merged.values())


@event.listens_for(SearchableMixin, "after_insert", propagate=True)
def _after_insert(mapper: Any, connection: Any, target: SearchableMixin) -> None:
    target._previously_new_record = True
    _queue_flushed(target, "insert")


@event.listens_for(SearchableMixin, "after_update", propagate=True)
def _after_update(mapper: Any, connection: Any, target: SearchableMixin) -> None:
    session = object_session(target)
    if session is None or not session.is_modified(target, include_collections=False):
        return
    target._previously_new_record = False
    _queue_flushed(target, "update")


@event.listens_for(SearchableMixin, "after_delete", propagate=True)
def _after_delete(mapper: Any, connection: Any, target: SearchableMixin) -> None:
    _queue_flushed(target, "delete")


@event.listens_for(Session, "after_flush_postexec")
def _collect_pending(session: Session, flush_context: Any) -> None:
    # Texts are rendered here, while the transaction can still load expired attributes.
    flushed = session.info.pop(_FLUSHED_KEY, None)
    if not flushed:
        return
    transaction = session.get_nested_transaction() or session.get_transaction()
    pending: list[_PendingUpsert] = session.info.setdefault(_PENDING_KEY, [])
    for record, operation in flushed:
        binding = type(record).__search_binding__
        if binding is None or not binding.index_on_commit:
            continue
        pending.append(
            _PendingUpsert(
                binding=binding,
                record_id=binding.record_id(record),
                text=None if operation == "delete" else record.as_vector(),
                created=operation == "insert",
                transaction=transaction,
            )
        )


@event.listens_for(Session, "after_commit")
def _promote_pending(session: Session) -> None:
    savepoint = session.get_nested_transaction()
    if savepoint is not None:
        # A released savepoint hands its writes to the enclosing transaction.
        for item in session.info.get(_PENDING_KEY, []):
            if item.transaction is savepoint:
                item.transaction = savepoint.parent
        return
    pending = session.info.pop(_PENDING_KEY, None)
    if pending:
        session.info[_COMMITTED_KEY] = _merge_pending(pending)


@event.listens_for(Session, "after_soft_rollback")
def _discard_rolled_back(session: Session, previous_transaction: SessionTransaction) -> None:
    session.info.pop(_FLUSHED_KEY, None)
    if not previous_transaction.nested:
        return
    pending = session.info.get(_PENDING_KEY)
    if pending:
        session.info[_PENDING_KEY] = [
            item for item in pending if not _opened_within(item.transaction, previous_transaction)
        ]


@event.listens_for(Session, "after_transaction_end")
def _index_committed(session: Session, transaction: SessionTransaction) -> None:
    if transaction.parent is not None:
        return
    # Whatever was not committed by now never reached the database.
    session.info.pop(_FLUSHED_KEY, None)
    session.info.pop(_PENDING_KEY, None)
    committed: list[_PendingUpsert] | None = session.info.pop(_COMMITTED_KEY, None)
    if not committed:
        return
    LOGGER.debug("Indexing committed records | count=%d", len(committed))
    failures: list[tuple[_PendingUpsert, Exception]] = []
    for item in committed:
        try:
            item.binding.index([item.text], [item.record_id], created=item.created)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception(
                "Indexing after commit failed | model=%s id=%s",
                item.binding.model.__name__,
                item.record_id,
            )
            failures.append((item, exc))
    if failures:
        failed = ", ".join(f"{item.binding.model.__name__}:{item.record_id!r}" for item, _ in failures)
        raise IndexingError(
            f"Indexing after commit failed for {len(failures)} of {len(committed)} records: {failed}",
            cause=failures[0][1],
        ) from failures[0][1]


__all__ = ["SearchableMixin"]
