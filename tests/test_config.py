"""Settings, logging configuration and provider selection."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from sqlalchemy.orm import Session, sessionmaker

from recordsearch.config import Settings
from recordsearch.embeddings.local import LocalEmbeddingClient
from recordsearch.logging import LOG_FILE_NAME, _JsonFormatter, build_logging_config
from recordsearch.providers.factory import create_provider
from recordsearch.providers.memory import MemoryProvider
from recordsearch.providers.pgvector import PgvectorProvider

from conftest import ScriptedLLM


def test_defaults() -> None:
    settings = Settings()

    assert settings.vectorsearch.provider == "memory"
    assert settings.vectorsearch.index_on_commit is True
    assert settings.embed.batch_size == 1000
    assert settings.embed.on_error == "raise"
    assert settings.sqlalchemy_database_uri().startswith("postgresql+psycopg://")


def test_nested_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECORDSEARCH_VECTORSEARCH__PROVIDER", "pgvector")
    monkeypatch.setenv("RECORDSEARCH_VECTORSEARCH__DISTANCE", "euclidean")
    monkeypatch.setenv("RECORDSEARCH_EMBED__BATCH_SIZE", "50")
    monkeypatch.setenv("RECORDSEARCH_POSTGRES__HOST", "db.internal")

    settings = Settings()

    assert settings.vectorsearch.provider == "pgvector"
    assert settings.vectorsearch.distance == "euclidean"
    assert settings.embed.batch_size == 50
    assert "@db.internal:5432/" in settings.postgres.dsn


def test_logging_config_writes_to_configured_directory(tmp_path: Path) -> None:
    settings = Settings()
    settings.logging.directory = tmp_path
    settings.logging.level = "debug"

    config = build_logging_config(settings)

    assert config["handlers"]["app_file"]["filename"] == str(tmp_path / LOG_FILE_NAME)
    assert config["loggers"]["recordsearch"]["level"] == "DEBUG"
    assert config["handlers"]["default"]["formatter"] == "json"


def test_logging_config_without_directory_skips_file_handler() -> None:
    settings = Settings()
    settings.logging.directory = None

    config = build_logging_config(settings)

    assert "app_file" not in config["handlers"]
    assert config["loggers"]["recordsearch"]["handlers"] == ["default"]


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("recordsearch.hooks", logging.INFO, __file__, 1, "Indexed %s", ("Recipe",), None)
    record.record_id = 7

    payload = json.loads(_JsonFormatter().format(record))

    assert payload["message"] == "Indexed Recipe"
    assert payload["record_id"] == 7
    assert payload["level"] == "INFO"


def test_create_provider_selects_memory_by_default() -> None:
    provider = create_provider(Settings(), embedder=LocalEmbeddingClient(dimension=3), llm=ScriptedLLM([]))

    assert isinstance(provider, MemoryProvider)


def test_create_provider_selects_pgvector(session_factory: sessionmaker[Session]) -> None:
    settings = Settings()
    settings.vectorsearch.provider = "pgvector"
    settings.vectorsearch.distance = "inner_product"

    provider = create_provider(
        settings,
        session_factory=session_factory,
        embedder=LocalEmbeddingClient(dimension=3),
        llm=ScriptedLLM([]),
    )

    assert isinstance(provider, PgvectorProvider)
    assert provider.distance == "inner_product"
    assert provider.column == "embedding"
