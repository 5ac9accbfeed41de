from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path
import sys
from typing import Any, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
from pgvector.sqlalchemy import Vector
from sqlalchemy import Integer, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from recordsearch.database import Base
from recordsearch.embeddings.base import EmbeddingClient
from recordsearch.exceptions import IndexingError
from recordsearch.hooks import SearchableMixin
from recordsearch.llm.base import LLMClient
from recordsearch.providers.base import Answer, ChunkSink, SearchResult, VectorSearchProvider


class Recipe(SearchableMixin, Base):
    __tablename__ = "recipes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    cuisine: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    embedding: Mapped[Optional[list[float]]] = mapped_column(Vector(3))


class Article(SearchableMixin, Base):
    __tablename__ = "articles"
    __vector_exclude__ = ("secret",)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    secret: Mapped[Optional[str]] = mapped_column(String(255))


class Menu(SearchableMixin, Base):
    __tablename__ = "menus"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    embedding: Mapped[Optional[str]] = mapped_column(Text)

    def as_vector(self) -> str:
        return f"Menu: {self.name}"


class Dish(SearchableMixin, Base):
    __tablename__ = "dishes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    vec: Mapped[Optional[list[float]]] = mapped_column(Vector(3))


class RecordingProvider(VectorSearchProvider):
    """Provider double that records every call and replays canned results."""

    def __init__(
        self,
        results: Sequence[SearchResult] = (),
        *,
        chunks: Sequence[str] = (),
        fail_ids: set[Any] | None = None,
    ) -> None:
        self.results = list(results)
        self.chunks = list(chunks)
        self.fail_ids = fail_ids or set()
        self.added: list[tuple[list[str], list[Any]]] = []
        self.updated: list[tuple[list[str], list[Any]]] = []
        self.searches: list[tuple[str, int]] = []
        self.questions: list[tuple[str, int]] = []

    def _check(self, ids: Sequence[Any]) -> None:
        failing = self.fail_ids.intersection(ids)
        if failing:
            raise IndexingError(f"index rejected {sorted(failing)}")

    def add_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        self._check(ids)
        self.added.append((list(texts), list(ids)))

    def update_texts(self, texts: Sequence[str], ids: Sequence[Any]) -> None:
        self._check(ids)
        self.updated.append((list(texts), list(ids)))

    def similarity_search(self, query: str, *, k: int = 4) -> list[SearchResult]:
        self.searches.append((query, k))
        return self.results[:k]

    def ask(self, question: str, *, k: int = 4, on_chunk: Optional[ChunkSink] = None) -> Answer:
        self.questions.append((question, k))
        for chunk in self.chunks:
            if on_chunk is not None:
                on_chunk(chunk)
        return Answer(completion="".join(self.chunks))


class KeywordEmbedder(EmbeddingClient):
    """Embed texts as counts of a fixed keyword vocabulary."""

    VOCABULARY = ("beef", "fish", "salad")

    def __init__(self) -> None:
        self.model_name = "keyword-counts"
        self.calls: list[list[str]] = []

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [[float(text.lower().count(word)) for word in self.VOCABULARY] for text in texts]


class ScriptedLLM(LLMClient):
    """LLM double yielding pre-set chunks."""

    def __init__(self, chunks: Sequence[str]) -> None:
        self.chunks = list(chunks)
        self.prompts: list[tuple[str, list[str] | None]] = []

    def generate(self, prompt: str, *, context: Sequence[str] | None = None) -> Iterator[str]:
        self.prompts.append((prompt, list(context) if context is not None else None))
        yield from self.chunks


@pytest.fixture
def engine() -> Iterator[Engine]:
    """In-memory SQLite database with the test models' tables."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture(autouse=True)
def _reset_bindings() -> Iterator[None]:
    yield
    for model in (Recipe, Article, Menu, Dish):
        model.__search_binding__ = None


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def recipes(session_factory: sessionmaker[Session]) -> list[Recipe]:
    """Five stored recipes with ids 1 to 5."""

    rows = [
        Recipe(id=1, title="Beef lasagne", cuisine="italian", description="Layered beef and pasta"),
        Recipe(id=2, title="Fish tacos", cuisine="mexican", description="Grilled fish in tortillas"),
        Recipe(id=3, title="Bistecca", cuisine="italian", description="Florentine beef steak"),
        Recipe(id=4, title="Caesar salad", cuisine="american", description="Romaine salad"),
        Recipe(id=5, title="Beef massaman", cuisine="thai", description="Slow cooked beef curry"),
    ]
    with session_factory() as session:
        session.add_all(rows)
        session.commit()
    return rows
