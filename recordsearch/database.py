"""Database configuration helpers shared by searchable models."""
from __future__ import annotations

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import Settings

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    metadata = metadata


SessionFactory = sessionmaker[Session]

_engine: Engine | None = None
_session_factory: SessionFactory | None = None


def configure_engine(settings: Settings) -> SessionFactory:
    """Configure the database engine and session factory."""

    global _engine, _session_factory
    if _engine is None:
        _engine = create_engine(
            settings.sqlalchemy_database_uri(),
            echo=settings.postgres.echo,
        )
    if _session_factory is None:
        _session_factory = sessionmaker(_engine, expire_on_commit=False)
    return _session_factory


__all__ = [
    "Base",
    "metadata",
    "configure_engine",
    "SessionFactory",
]
