"""Database configuration and session dependency."""

from typing import Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from exam_engine.config import get_settings


def build_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine; SQLite connections get foreign key enforcement."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    new_engine = create_engine(database_url, echo=echo, **kwargs)

    if new_engine.dialect.name == "sqlite":

        @event.listens_for(new_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


_settings = get_settings()
engine = build_engine(_settings.database_url, echo=_settings.sql_echo)


def create_db_and_tables(target: Engine = engine) -> None:
    """Create database tables based on SQLModel metadata."""
    # models must be imported so their tables are registered on the metadata
    from exam_engine import models  # noqa: F401

    SQLModel.metadata.create_all(target)


def get_session() -> Iterator[Session]:
    """FastAPI dependency that yields a database session."""
    with Session(engine) as session:
        yield session
