"""Key-value persistence for user rules and confirmed subscriptions.

Usage
-----
from spending_analysis.storage import SqlKeyValueStore

store = SqlKeyValueStore.from_url("sqlite+pysqlite:///spending.db")
store.set("confirmed_subscriptions.v1", payload)

Values are opaque strings (JSON in practice); callers own their schema and
validate on load. Errors from the database propagate to the caller.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from sqlalchemy import DateTime, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from .logging_setup import get_logger

logger = get_logger("spending_analysis.storage")

_DATABASE_URL_ENV = "SPENDING_ANALYSIS_DATABASE_URL"


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed store for tests and short-lived sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


# ---------------------------
# SQLAlchemy-backed store
# ---------------------------


class Base(DeclarativeBase):
    pass


class KvEntry(Base):
    __tablename__ = "sa_kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv(_DATABASE_URL_ENV)
    if not url:
        raise RuntimeError(f"{_DATABASE_URL_ENV} is not set; cannot open the key-value store")
    return url


class SqlKeyValueStore:
    """Key-value store kept in the ``sa_kv_entries`` table.

    The table is created on construction when missing. Each operation runs in
    its own transaction.
    """

    def __init__(self, engine: Engine, *, create_schema: bool = True) -> None:
        self._engine = engine
        self._session_maker = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
        if create_schema:
            Base.metadata.create_all(bind=engine, tables=[KvEntry.__table__])

    @classmethod
    def from_url(cls, database_url: str | None = None) -> SqlKeyValueStore:
        """Open a store for ``database_url`` (or ``$SPENDING_ANALYSIS_DATABASE_URL``)."""

        engine = create_engine(_database_url(database_url), pool_pre_ping=True)
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""

        session = self._session_maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, key: str) -> str | None:
        with self.session_scope() as session:
            row = session.execute(select(KvEntry.value).where(KvEntry.key == key)).first()
        return None if row is None else row[0]

    def set(self, key: str, value: str) -> None:
        now = datetime.now(UTC)
        with self.session_scope() as session:
            entry = session.get(KvEntry, key)
            if entry is None:
                session.add(KvEntry(key=key, value=value, updated_at=now))
            else:
                entry.value = value
                entry.updated_at = now
        logger.debug("stored %d byte(s) under %s", len(value), key)

    def remove(self, key: str) -> None:
        with self.session_scope() as session:
            entry = session.get(KvEntry, key)
            if entry is not None:
                session.delete(entry)


__all__ = [
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "KvEntry",
    "SqlKeyValueStore",
]
