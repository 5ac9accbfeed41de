"""Bulk re-embedding of every stored record."""
from __future__ import annotations

import pytest
from sqlalchemy.orm import Session, sessionmaker

from recordsearch.exceptions import IndexingError

from conftest import Recipe, RecordingProvider


def test_embed_all_updates_every_record(
    session_factory: sessionmaker[Session], provider: RecordingProvider, recipes: list[Recipe]
) -> None:
    Recipe.vectorsearch(provider, index_on_commit=False)
    with session_factory() as session:
        report = Recipe.embed_all(session, batch_size=2)

    assert report.indexed == 5
    assert report.ok
    assert [ids for _, ids in provider.updated] == [[1], [2], [3], [4], [5]]
    assert provider.added == []


def test_embed_all_reindexes_already_indexed_records(
    session_factory: sessionmaker[Session], provider: RecordingProvider, recipes: list[Recipe]
) -> None:
    Recipe.vectorsearch(provider, index_on_commit=False)
    with session_factory() as session:
        Recipe.embed_all(session)
        Recipe.embed_all(session)

    assert len(provider.updated) == 10


def test_embed_all_aborts_on_first_failure_by_default(
    session_factory: sessionmaker[Session], recipes: list[Recipe]
) -> None:
    provider = RecordingProvider(fail_ids={3})
    Recipe.vectorsearch(provider, index_on_commit=False)
    with session_factory() as session:
        with pytest.raises(IndexingError):
            Recipe.embed_all(session)

    assert [ids for _, ids in provider.updated] == [[1], [2]]


def test_embed_all_collects_failures_when_configured(
    session_factory: sessionmaker[Session], recipes: list[Recipe]
) -> None:
    provider = RecordingProvider(fail_ids={2, 4})
    Recipe.vectorsearch(provider, index_on_commit=False, on_error="collect")
    with session_factory() as session:
        report = Recipe.embed_all(session)

    assert report.indexed == 3
    assert not report.ok
    assert [record_id for record_id, _ in report.failed] == [2, 4]
    assert all(isinstance(exc, IndexingError) for _, exc in report.failed)
    assert [ids for _, ids in provider.updated] == [[1], [3], [5]]


def test_embed_all_policy_can_be_overridden_per_call(
    session_factory: sessionmaker[Session], recipes: list[Recipe]
) -> None:
    provider = RecordingProvider(fail_ids={1})
    Recipe.vectorsearch(provider, index_on_commit=False, on_error="raise")
    with session_factory() as session:
        report = Recipe.embed_all(session, on_error="collect")

    assert report.indexed == 4
    assert [record_id for record_id, _ in report.failed] == [1]
