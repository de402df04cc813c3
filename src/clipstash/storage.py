# region Docstring
"""
clipstash.storage
Durable clipboard history backed by a single SQLite file.
Overview:
    - Wraps the history table behind the small operation set used by the watcher
      and the command line: insert, last_content, list_recent, get_by_id, search,
      clear and count.
    - Translates SQLAlchemy failures into typed storage errors so callers can
      decide between logging and aborting.
Contents:
    - Exceptions:
        - StorageError:
            Raised when the storage engine fails an operation.
        - StorageBusyError:
            Raised when a competing writer held the lock past the wait bound.
    - Services:
        - Storage:
            Owns one DatabaseSessionGenerator. Open with Storage.open(path) or
            Storage.from_settings(settings) and close with .close() or a `with`
            block.
Design Notes:
    - Every operation is a single statement in its own session, so there is no
      partial progress to cancel.
    - Readers see a consistent snapshot under WAL; a concurrent insert may or
      may not be visible yet, but never half-written.
    - clear() reclaims disk space with VACUUM after the delete commits. A failing
      VACUUM is logged only; the rows are already gone.
"""

# endregion
# region Imports
import logging
from datetime import datetime
from logging import Logger as T_Logger
from pathlib import Path
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from clipstash.config import StorageSettings, ensure_private_dir
from clipstash.database import DatabaseSessionGenerator as DBSession
from clipstash.models import HistoryEntry, HistoryEntryEntity
from clipstash.utils import as_utc, get_time

LIKE_ESCAPE = "\\"
# Row ids are signed 64-bit integers
MAX_ROW_ID = 2**63 - 1


class StorageError(Exception):
    """Custom exception for storage failures."""

    pass


class StorageBusyError(StorageError):
    """The database stayed locked by another writer for longer than the wait bound."""

    pass


def _is_busy(error: Exception) -> bool:
    if isinstance(error, PoolTimeoutError):
        return True
    if isinstance(error, OperationalError):
        message = str(error.orig).lower()
        return "locked" in message or "busy" in message
    return False


def _like_pattern(term: str) -> str:
    """Substring pattern for LIKE with the wildcard characters of `term` escaped."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise ValueError(f"limit must be zero or positive, got {limit}")


# endregion
# region Storage Service
class Storage:
    __db_session: DBSession
    __logger: T_Logger

    def __init__(self, db_session: DBSession, logger: Optional[T_Logger] = None) -> None:
        self.__db_session = db_session
        self.__logger = (logger or logging.getLogger("clipstash")).getChild(
            self.__class__.__name__
        )

    @classmethod
    def open(
        cls,
        path: Path,
        busy_timeout_ms: int = 5000,
        journal_mode: str = "WAL",
        synchronous: str = "NORMAL",
        logger: Optional[T_Logger] = None,
    ) -> "Storage":
        """
        Open (or create) the history database at `path`.

        Arguments:
            path (Path): Database file. Missing parent directories are created.
            busy_timeout_ms (int): How long a write waits on a competing writer.
            journal_mode (str): SQLite journal mode.
            synchronous (str): SQLite fsync policy.
            logger (Optional[Logger]): Parent logger.

        Returns:
            Storage: An open storage handle.

        Raises:
            StoragePathError: If the parent directory cannot be created.
            StorageError: If the schema cannot be created.
        """
        path = Path(path)
        ensure_private_dir(path.parent)
        db_session = DBSession(
            path,
            busy_timeout_ms=busy_timeout_ms,
            journal_mode=journal_mode,
            synchronous=synchronous,
            logger=logger,
        )
        try:
            db_session.init_db()
        except SQLAlchemyError as e:
            db_session.dispose()
            raise StorageError(f"Error creating schema in {path}: {e}") from e
        return cls(db_session, logger=logger)

    @classmethod
    def from_settings(
        cls, settings: StorageSettings, logger: Optional[T_Logger] = None
    ) -> "Storage":
        """Open the database described by `settings`."""
        return cls.open(
            settings.database_path,
            busy_timeout_ms=settings.busy_timeout_ms,
            journal_mode=settings.journal_mode,
            synchronous=settings.synchronous,
            logger=logger,
        )

    @property
    def path(self) -> Path:
        return self.__db_session.path

    def _error(self, action: str, error: Exception) -> StorageError:
        if _is_busy(error):
            return StorageBusyError(f"Database busy during {action}: {error}")
        return StorageError(f"Failed to {action}: {error}")

    def insert(self, content: str, created_at: Optional[datetime] = None) -> int:
        """
        Append one entry.

        Arguments:
            content (str): Clipboard text, stored exactly as given.
            created_at (Optional[datetime]): Capture time; defaults to now (UTC).

        Returns:
            int: The id assigned to the new row.

        Raises:
            ValueError: If `content` is empty.
            StorageBusyError: If another writer held the lock past the wait bound.
            StorageError: If the write fails for any other reason, including
                text SQLite cannot encode (lone surrogates).
        """
        if not content:
            raise ValueError("content must be a non-empty string")

        entity = HistoryEntryEntity(
            content=content, created_at=as_utc(created_at or get_time())
        )
        try:
            with self.__db_session.get_session() as session:
                session.add(entity)
                session.commit()
        except (SQLAlchemyError, UnicodeEncodeError) as e:
            raise self._error("insert entry", e) from e
        return entity.id

    def last_content(self) -> Optional[str]:
        """Content of the most recently inserted entry, or None when empty."""
        stmt = (
            select(HistoryEntryEntity.content)
            .order_by(HistoryEntryEntity.id.desc())
            .limit(1)
        )
        try:
            with self.__db_session.get_session() as session:
                return session.scalar(stmt)
        except SQLAlchemyError as e:
            raise self._error("read last entry", e) from e

    def list_recent(self, limit: int) -> list[HistoryEntry]:
        """Up to `limit` entries, newest first."""
        _check_limit(limit)
        stmt = (
            select(HistoryEntryEntity)
            .order_by(HistoryEntryEntity.id.desc())
            .limit(limit)
        )
        try:
            with self.__db_session.get_session() as session:
                return [entity.model for entity in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise self._error("list entries", e) from e

    def get_by_id(self, entry_id: int) -> Optional[str]:
        """Content of entry `entry_id`, or None if there is no such entry."""
        if not 0 < entry_id <= MAX_ROW_ID:
            return None
        try:
            with self.__db_session.get_session() as session:
                entity = session.get(HistoryEntryEntity, entry_id)
                return entity.content if entity is not None else None
        except SQLAlchemyError as e:
            raise self._error(f"read entry {entry_id}", e) from e

    def search(self, term: str, limit: int) -> list[HistoryEntry]:
        """
        Entries whose content contains `term`, newest first.

        The match is SQLite's LIKE, so ASCII letters compare case-insensitively.
        `%` and `_` in `term` match themselves.
        """
        _check_limit(limit)
        stmt = (
            select(HistoryEntryEntity)
            .where(HistoryEntryEntity.content.like(_like_pattern(term), escape=LIKE_ESCAPE))
            .order_by(HistoryEntryEntity.id.desc())
            .limit(limit)
        )
        try:
            with self.__db_session.get_session() as session:
                return [entity.model for entity in session.scalars(stmt)]
        except (SQLAlchemyError, UnicodeEncodeError) as e:
            raise self._error("search entries", e) from e

    def count(self) -> int:
        """Number of stored entries."""
        stmt = select(func.count()).select_from(HistoryEntryEntity)
        try:
            with self.__db_session.get_session() as session:
                return session.scalar(stmt) or 0
        except SQLAlchemyError as e:
            raise self._error("count entries", e) from e

    def clear(self) -> int:
        """
        Delete every entry, then compact the file.

        Returns:
            int: Number of rows deleted.

        Raises:
            StorageError: If the delete fails. A failed VACUUM is only logged.
        """
        try:
            with self.__db_session.get_session() as session:
                result = session.execute(
                    delete(HistoryEntryEntity).execution_options(
                        synchronize_session=False
                    )
                )
                session.commit()
                deleted = result.rowcount
        except SQLAlchemyError as e:
            raise self._error("clear history", e) from e

        try:
            self.__db_session.vacuum()
        except SQLAlchemyError as e:
            self.__logger.warning("VACUUM failed: %s", e)

        self.__logger.info("Cleared %s entries.", deleted)
        return deleted

    def close(self) -> None:
        self.__db_session.dispose()

    def __enter__(self) -> "Storage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# endregion
