# blog_api/database.py
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class Database:
    """
    Pooled SQL access shared by every controller.

    Owns the engine (connection pool) and the session factory. One instance
    is built per application and handed to it explicitly.
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any) -> None:
        sa_url = make_url(url)

        if sa_url.get_backend_name() == "sqlite":
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
            if sa_url.database in (None, "", ":memory:"):
                # Single shared connection, otherwise each checkout sees an empty database
                engine_kwargs.setdefault("poolclass", StaticPool)
            else:
                Path(sa_url.database).parent.mkdir(parents=True, exist_ok=True)
        else:
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.engine: Engine = create_engine(url, echo=echo, future=True, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
            future=True,
        )

    def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Run a parameterized statement and return rows as plain dicts."""
        with self.engine.begin() as conn:
            result = conn.execute(text(sql), params or {})
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings().all()]

    def scalar(self, sql: str, params: dict[str, Any] | None = None) -> Any:
        with self.engine.connect() as conn:
            return conn.execute(text(sql), params or {}).scalar_one()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        # Import models so they register on Base.metadata
        from blog_api import models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Generator[Session, None, None]:
    with get_database(request).session() as db:
        yield db
