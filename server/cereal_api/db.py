# ─────────────────────────────────────────────────────────────────────────────
# Database — SQLAlchemy engine + session factory
# ─────────────────────────────────────────────────────────────────────────────
# One Database per application, created in the lifespan and stored on
# app.state. Requests get their own Session via dependencies.get_db_session.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = structlog.get_logger(__name__)

_MEMORY_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def _engine_options(url: str) -> dict[str, Any]:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    # In-memory SQLite lives inside one connection; share it across threads.
    if url in _MEMORY_URLS:
        options["poolclass"] = StaticPool
    return options


class Database:
    """Owns the engine and hands out sessions."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        self.engine: Engine = create_engine(url, echo=echo, **_engine_options(url))
        self._session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def create_all(self) -> None:
        """Create every table registered on Base (idempotent)."""
        # Import registers the models on Base.metadata.
        from cereal_api import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("database_schema_ready", tables=sorted(Base.metadata.tables))

    def new_session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scope: rolled back on error, always closed."""
        session = self._session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """True when the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("database_ping_failed", exc_info=True)
            return False

    def dispose(self) -> None:
        self.engine.dispose()
