"""
SQLAlchemy-backed key-value store.
Uses a single table of string keys and JSON-encoded string values.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from sqlalchemy import DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from swipe_nexus.errors import StorageError
from swipe_nexus.storage.store import KeyValueStore

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class KeyValue(Base):
    """One persisted entry."""

    __tablename__ = "key_values"

    key: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )
    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<KeyValue(key={self.key!r}, {len(self.value)} chars)>"


class SqlKeyValueStore(KeyValueStore):
    """
    Key-value store in a relational database.
    Tables are created on construction if they don't exist.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.database_url = database_url

        try:
            if database_url.startswith("sqlite"):
                self._engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                )
            else:
                self._engine = create_engine(database_url, echo=echo)
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not initialize store at {database_url}: {e}") from e

        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)

        logger.info(f"Key-value store ready: {database_url}")

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on failure."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, key: str) -> str | None:
        with self._session() as session:
            row = session.get(KeyValue, key)
            return row.value if row is not None else None

    def set(self, key: str, value: str) -> None:
        with self._session() as session:
            row = session.get(KeyValue, key)
            if row is None:
                session.add(KeyValue(key=key, value=value))
            else:
                row.value = value

    def delete(self, key: str) -> bool:
        with self._session() as session:
            row = session.get(KeyValue, key)
            if row is None:
                return False
            session.delete(row)
            return True

    def close(self) -> None:
        self._engine.dispose()
