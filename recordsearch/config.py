"""Application configuration objects based on Pydantic settings."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostgresSettings(BaseModel):
    """PostgreSQL connection settings."""

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = "postgres"
    database: str = "recordsearch"
    echo: bool = False

    @property
    def dsn(self) -> str:
        return f"postgresql+psycopg://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


class LLMSettings(BaseModel):
    """LLM and embedding backend configuration for Ollama and vLLM."""

    provider: Literal["ollama", "vllm"] = "ollama"
    embedding_provider: Literal["ollama", "local"] = "ollama"
    ollama_host: str = "http://localhost:11434"
    ollama_model: str = "qwen3:4b"
    embedding_model: str = "qwen3-embedding:0.6b"
    embedding_dimension: Optional[int] = Field(default=None, gt=0)
    vllm_host: str = "http://localhost:8000"
    vllm_model: str = "qwen3:12b"
    request_timeout: int = 60


class VectorSearchSettings(BaseModel):
    """Which vector search provider searchable models bind to by default."""

    provider: Literal["memory", "pgvector"] = "memory"
    embedding_column: str = "embedding"
    distance: Literal["cosine", "euclidean", "inner_product"] = "cosine"
    index_on_commit: bool = True


class EmbedSettings(BaseModel):
    """Defaults for bulk re-embedding of existing records."""

    batch_size: int = Field(default=1000, gt=0)
    on_error: Literal["raise", "collect"] = "raise"


class LoggingSettings(BaseModel):
    """Log output configuration."""

    level: str = "INFO"
    directory: Optional[Path] = Path("logs")
    json_format: bool = True
    max_bytes: int = 5_000_000
    backup_count: int = 3


class Settings(BaseSettings):
    """Aggregate settings for the package."""

    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    vectorsearch: VectorSearchSettings = Field(default_factory=VectorSearchSettings)
    embed: EmbedSettings = Field(default_factory=EmbedSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RECORDSEARCH_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    def sqlalchemy_database_uri(self) -> str:
        """Return SQLAlchemy DSN."""

        return self.postgres.dsn


@lru_cache()
def load_settings() -> Settings:
    """Load settings with caching."""

    return Settings()


__all__ = [
    "Settings",
    "PostgresSettings",
    "LLMSettings",
    "VectorSearchSettings",
    "EmbedSettings",
    "LoggingSettings",
    "load_settings",
]
