"""
clipstash.database

Shared SQLAlchemy declarative base and engine/session management for the
history database.

Overview:
- Provides a single `declarative_base()` instance (`Base`) inherited by the
    ORM entity classes.
- Includes a utility class that owns the SQLite engine for one database file,
    applies the durability and locking pragmas to every connection, creates the
    schema and hands out sessions.

Contents:
- Base:
    Singleton `declarative_base` instance.

- DatabaseSessionGenerator:
    - __init__(path, busy_timeout_ms, journal_mode, synchronous):
        Builds an engine capped at a single pooled connection.
    - get_session() -> Session:
        Creates a new synchronous SQLAlchemy session.
    - init_db():
        Creates every table with CREATE TABLE IF NOT EXISTS.
    - vacuum():
        Runs VACUUM outside of a transaction.
    - dispose():
        Closes the pooled connection.

Design Notes:
- The pool holds at most one connection, so a process never competes with
    itself for the SQLite write lock. A second checkout inside the same process
    waits as long as SQLite would wait for another process.
- Cross-process writers are serialised by SQLite's own locking; the busy
    handler waits `busy_timeout_ms` before the engine reports "database is locked".
- IF NOT EXISTS keeps schema creation safe when several processes open the
    same file at the same moment.
"""

import logging
import sqlite3
from logging import Logger as T_Logger
from pathlib import Path
from typing import Optional

from sqlalchemy import URL, create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.schema import CreateTable

Base = declarative_base()
"""Singleton `declarative_base` instance for ORM models."""


class DatabaseSessionGenerator:
    """
    Utility class to generate SQLAlchemy sessions bound to one SQLite file.

    Attributes:
        path (Path): The database file.
        engine (sqlalchemy.engine.Engine): The engine sessions are bound to.
    """

    def __init__(
        self,
        path: Path,
        busy_timeout_ms: int = 5000,
        journal_mode: str = "WAL",
        synchronous: str = "NORMAL",
        logger: Optional[T_Logger] = None,
    ):
        self.path = Path(path)
        self.busy_timeout_ms = busy_timeout_ms
        self.journal_mode = journal_mode
        self.synchronous = synchronous
        self.__logger = (logger or logging.getLogger("clipstash")).getChild(
            self.__class__.__name__
        )

        timeout_s = busy_timeout_ms / 1000
        self.engine = create_engine(
            URL.create("sqlite", database=str(self.path)),
            connect_args={"timeout": timeout_s},
            pool_size=1,
            max_overflow=0,
            pool_timeout=max(timeout_s, 0.001),
        )
        event.listen(self.engine, "connect", self._configure_connection)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def _configure_connection(self, dbapi_connection, connection_record) -> None:
        """Apply journal, fsync and lock-wait pragmas to a fresh connection."""
        pragmas = (
            f"PRAGMA journal_mode={self.journal_mode}",
            f"PRAGMA synchronous={self.synchronous}",
            f"PRAGMA busy_timeout={int(self.busy_timeout_ms)}",
        )
        cursor = dbapi_connection.cursor()
        try:
            for pragma in pragmas:
                try:
                    cursor.execute(pragma)
                except sqlite3.Error as e:
                    self.__logger.warning("Failed to apply %s: %s", pragma, e)
        finally:
            cursor.close()

    def get_session(self) -> Session:
        """
        Creates a new SQLAlchemy session bound to the configured engine.

        Returns:
            sqlalchemy.orm.Session: A new session instance.
        """
        return self._session_factory()

    def init_db(self) -> None:
        """
        Initializes the database by creating all tables defined in the ORM models.
        """
        with self.engine.begin() as conn:
            for table in Base.metadata.sorted_tables:
                conn.execute(CreateTable(table, if_not_exists=True))

    def vacuum(self) -> None:
        """Rebuild the database file to give freed pages back to the filesystem."""
        with self.engine.connect() as conn:
            conn.execution_options(isolation_level="AUTOCOMMIT").exec_driver_sql(
                "VACUUM"
            )

    def dispose(self) -> None:
        """Close pooled connections."""
        self.engine.dispose()
