"""
SettleWatch File Index.

Persisted record of files that have already been converted, keyed by
a hash of the file name.
Requires Python 3.11+.
"""

import base64
import hashlib
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, func, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from utils.logger import LoggerMixin

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hash_file_name(name: str | Path) -> str:
    """
    Compute the dedup key for a file name.

    Returns:
        Base64 encoded SHA-256 digest of the path string
    """
    digest = hashlib.sha256(str(name).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


class FileIndexEntry(Base):
    """A file that has been handed to the converter."""

    __tablename__ = "file_index"

    id = Column(Integer, primary_key=True, autoincrement=True)

    file_name = Column(Text, nullable=False, doc="Absolute source path")

    file_name_hash = Column(
        String(512),
        nullable=False,
        unique=True,
        index=True,
        doc="Base64 SHA-256 of file_name",
    )

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert entry to dictionary."""
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            result[column.name] = value
        return result

    def __repr__(self) -> str:
        return f"<FileIndexEntry(id={self.id}, file_name={self.file_name!r})>"


class FileIndex(LoggerMixin):
    """
    SQLite-backed dedup index.

    Lookups and inserts take an explicit session so a caller can keep
    the index entry and the work it guards in one transaction.
    """

    def __init__(self, db_path: Path) -> None:
        """
        Initialize the index.

        Args:
            db_path: Location of the SQLite database file
        """
        self._db_path = db_path
        self._engine = create_engine(f"sqlite:///{db_path}")
        self._sessionmaker = sessionmaker(bind=self._engine, expire_on_commit=False)

    def initialize(self) -> bool:
        """
        Create the database file and schema if missing.

        Returns:
            True if the database file did not exist before
        """
        created = not self._db_path.exists()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        Base.metadata.create_all(self._engine)
        self.log.info("file_index_ready", path=str(self._db_path), created=created)
        return created

    def clear(self) -> None:
        """Drop and recreate the schema."""
        Base.metadata.drop_all(self._engine)
        Base.metadata.create_all(self._engine)
        self.log.warning("file_index_cleared", path=str(self._db_path))

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Open a session that commits on success and rolls back on error.

        Yields:
            Session bound to the index database
        """
        with self._sessionmaker.begin() as session:
            yield session

    def find_by_name(self, session: Session, name: str | Path) -> FileIndexEntry | None:
        """Look up an entry by file name."""
        stmt = select(FileIndexEntry).where(
            FileIndexEntry.file_name_hash == hash_file_name(name)
        )
        return session.execute(stmt).scalar_one_or_none()

    def create(self, session: Session, name: str | Path) -> FileIndexEntry:
        """Insert an entry for a file name."""
        entry = FileIndexEntry(
            file_name=str(name),
            file_name_hash=hash_file_name(name),
        )
        session.add(entry)
        session.flush()
        return entry

    def count(self) -> int:
        """Get number of indexed files."""
        with self._sessionmaker() as session:
            return session.execute(select(func.count(FileIndexEntry.id))).scalar_one()

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    @property
    def db_path(self) -> Path:
        """Location of the database file."""
        return self._db_path
