"""Single-value blob stores used to keep the model catalog across sessions."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from mango_client.errors import PersistenceError
from mango_client.persistence.models import BlobRecord


logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Get/set of one opaque string value."""

    @abstractmethod
    def get(self) -> str | None:
        """Return the stored value, or None if nothing was stored yet.

        Raises:
            PersistenceError: the backing storage could not be read
        """
        ...

    @abstractmethod
    def set(self, value: str) -> None:
        """Overwrite the stored value.

        Raises:
            PersistenceError: the backing storage could not be written
        """
        ...


class MemoryBlobStore(BlobStore):
    """Process-local store, handy for tests and ephemeral sessions."""

    def __init__(self, value: str | None = None):
        self.value = value

    def get(self) -> str | None:
        return self.value

    def set(self, value: str) -> None:
        self.value = value


class SQLBlobStore(BlobStore):
    """Blob stored as one row of the ``blobs`` table in any SQLAlchemy database."""

    def __init__(self, url: str, key: str):
        self.url = url
        self.key = key
        self._engine = create_engine(url)
        self._ready = False

    def _ensure_table(self) -> None:
        if not self._ready:
            SQLModel.metadata.create_all(self._engine, tables=[BlobRecord.__table__])
            self._ready = True

    def get(self) -> str | None:
        try:
            self._ensure_table()
            with Session(self._engine) as session:
                record = session.get(BlobRecord, self.key)
                return record.value if record is not None else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read blob {self.key!r}: {e}") from e

    def set(self, value: str) -> None:
        try:
            self._ensure_table()
            with Session(self._engine) as session:
                session.merge(BlobRecord(key=self.key, value=value))
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to write blob {self.key!r}: {e}") from e
        logger.debug(f"Persisted blob {self.key!r} ({len(value)} bytes)")

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()
