"""Durable, disk-backed FIFO queue for log records.

Each queue lives in its own SQLite file at ``<directory>/<queue_name>`` holding
a single table named after the queue. Entries are ordered by their
store-assigned id, read non-destructively with ``peek_oldest`` and removed with
``acknowledge`` once delivered.

The store holds one SQLAlchemy engine bound to a single shared connection and
serializes every call onto it with a lock. It is safe to share between threads
of one process, but NOT between processes: two processes opening the same
file concurrently is an unsupported deployment.

Failures never escape as exceptions. They are wrapped in the ``log_queue.errors``
taxonomy, handed to the injected ``ErrorReporter`` and turned into a sentinel
return value (``False`` or ``None``).
"""

import logging
import os
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Self, override

from pydantic import ValidationError
from sqlalchemy import Engine, Table, create_engine, delete, event, func, insert, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Config
from .entry_translator import row_to_entry
from .errors import (
    ErrorCode,
    ErrorReporter,
    InitializationError,
    LoggingErrorReporter,
    LogQueueError,
    ReadError,
    WriteError,
)
from .models import build_queue_table, validate_queue_name
from .schemas import Entry

logger = logging.getLogger(__name__)

JOURNAL_MODES = frozenset({"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"})
SYNCHRONOUS_LEVELS = frozenset({"OFF", "NORMAL", "FULL", "EXTRA", "0", "1", "2", "3"})


def _validate_pragma_settings() -> None:
    """Reject configured pragma values SQLite would not accept.

    Raises:
        ValueError: If journal mode or synchronous level is not a known keyword
    """
    if Config.SQLITE_JOURNAL_MODE.upper() not in JOURNAL_MODES:
        raise ValueError(f"Invalid SQLite journal mode: {Config.SQLITE_JOURNAL_MODE!r}")
    if Config.SQLITE_SYNCHRONOUS.upper() not in SYNCHRONOUS_LEVELS:
        raise ValueError(f"Invalid SQLite synchronous level: {Config.SQLITE_SYNCHRONOUS!r}")


def _set_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute(f"PRAGMA journal_mode={Config.SQLITE_JOURNAL_MODE}")
        cursor.execute(f"PRAGMA synchronous={Config.SQLITE_SYNCHRONOUS}")
        cursor.execute(f"PRAGMA busy_timeout={int(Config.SQLITE_BUSY_TIMEOUT_MS)}")
    finally:
        cursor.close()


class DurableQueueStore:
    """SQLite-backed durable FIFO queue.

    Lifecycle of an entry: ``enqueue`` makes it pending, ``peek_oldest`` reads
    it any number of times, ``acknowledge`` removes it exactly once. There is
    no in-flight state, so a consumer that crashes between peek and
    acknowledge sees the same entry again (at-least-once delivery). Running
    more than one consumer against a store duplicates deliveries.

    Example:
        store = DurableQueueStore("/var/spool/app", "app_logs")

        store.enqueue("user logged in")

        entry = store.peek_oldest()
        if entry is not None and ship(entry.message):
            store.acknowledge(entry.id)
    """

    def __init__(
        self,
        directory: str | os.PathLike[str] | None = None,
        queue_name: str | None = None,
        error_reporter: ErrorReporter | None = None,
    ):
        """Open (and create if needed) the queue.

        Never raises. If the storage file or schema cannot be set up, an
        InitializationError is reported and the store stays unusable.

        Args:
            directory: Directory holding the queue file. If None, uses QUEUE_DIR from config.
            queue_name: Queue name, used as file and table name. If None, uses QUEUE_NAME from config.
            error_reporter: Sink for handled failures. Defaults to LoggingErrorReporter.
        """
        self.error_reporter: ErrorReporter = error_reporter or LoggingErrorReporter()
        self.queue_name: str = queue_name if queue_name is not None else Config.QUEUE_NAME
        self.directory: Path = Path(directory if directory is not None else Config.QUEUE_DIR)
        self.path: Path = self.directory / self.queue_name

        self._lock: threading.RLock = threading.RLock()
        self._engine: Engine | None = None
        self.session_factory: sessionmaker[Session] | None = None
        self.table: Table | None = None

        try:
            self._open()
        except (SQLAlchemyError, sqlite3.Error, OSError, ValueError) as e:
            self._dispose()
            self._report(
                InitializationError,
                "Unable to create local database for log queue",
                e,
                ErrorCode.WRITE_FAILURE,
            )

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def _open(self) -> None:
        _ = validate_queue_name(self.queue_name)
        _validate_pragma_settings()
        self.directory.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            f"sqlite:///{self.path}",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=Config.SQLITE_ECHO,
        )
        event.listen(engine, "connect", _set_sqlite_pragmas)
        self._engine = engine

        table = build_queue_table(self.queue_name)

        # The table already exists when the queue was persisted by an earlier run
        if self._table_exists(engine):
            logger.info(f"Reusing existing queue table '{self.queue_name}' at {self.path}")
        else:
            with engine.begin() as connection:
                table.create(connection)
            logger.info(f"Created queue table '{self.queue_name}' at {self.path}")

        self.table = table
        self.session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        logger.debug(f"Opened log queue {self.path}")

    def _table_exists(self, engine: Engine) -> bool:
        with engine.connect() as connection:
            return inspect(connection).has_table(self.queue_name)

    def _dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self.session_factory = None
        self.table = None

    def _report(
        self,
        error_type: type[LogQueueError],
        message: str,
        cause: BaseException | None,
        code: ErrorCode,
    ) -> None:
        error = error_type(message)
        error.__cause__ = cause
        self.error_reporter.report(message, error, int(code))

    def _check_usable(
        self, error_type: type[LogQueueError], code: ErrorCode
    ) -> bool:
        if self.usable:
            return True
        self._report(
            error_type, f"Log queue '{self.queue_name}' is not open", None, code
        )
        return False

    # -------------------------------------------------------------------------
    # Queue Operations
    # -------------------------------------------------------------------------

    @property
    def usable(self) -> bool:
        """True while the store is open and initialized successfully."""
        return self._engine is not None and self.table is not None

    def enqueue(self, message: str) -> bool:
        """Durably append a new entry.

        Args:
            message: Log record text, any length

        Returns:
            True if the entry was committed, False if it was NOT persisted
        """
        with self._lock:
            if not self._check_usable(WriteError, ErrorCode.WRITE_FAILURE):
                return False
            if not isinstance(message, str):
                self._report(
                    WriteError,
                    "Unable to persist log message",
                    TypeError(f"Log message must be str, not {type(message).__name__}"),
                    ErrorCode.WRITE_FAILURE,
                )
                return False
            try:
                with self.session_factory() as session:
                    _ = session.execute(
                        insert(self.table).values(time=time.monotonic_ns(), message=message)
                    )
                    session.commit()
                return True
            except (SQLAlchemyError, UnicodeError) as e:
                self._report(WriteError, "Unable to persist log message", e, ErrorCode.WRITE_FAILURE)
                return False

    def peek_oldest(self) -> Entry | None:
        """Return the pending entry with the smallest id without removing it.

        A read failure is reported and also returns None, so callers cannot
        tell it apart from an empty queue through the return value.

        Returns:
            Oldest Entry, or None if the queue is empty or could not be read
        """
        with self._lock:
            if not self._check_usable(ReadError, ErrorCode.READ_FAILURE):
                return None
            stmt = (
                select(self.table.c.id, self.table.c.message, self.table.c.time)
                .order_by(self.table.c.id)
                .limit(1)
            )
            try:
                with self.session_factory() as session:
                    row = session.execute(stmt).first()
                return row_to_entry(row) if row is not None else None
            except SQLAlchemyError as e:
                self._report(ReadError, "Unable to query the log queue", e, ErrorCode.READ_FAILURE)
                return None
            except ValidationError as e:
                self._report(
                    ReadError, "Oldest log entry is not a valid text record", e, ErrorCode.READ_FAILURE
                )
                return None

    def acknowledge(self, entry_id: int | Entry) -> bool:
        """Remove a delivered entry.

        Args:
            entry_id: Id of the entry (or the Entry itself)

        Returns:
            True if exactly one entry was removed, False if the id was not
            pending or the delete failed
        """
        if isinstance(entry_id, Entry):
            entry_id = entry_id.id

        with self._lock:
            if not self._check_usable(WriteError, ErrorCode.WRITE_FAILURE):
                return False
            try:
                with self.session_factory() as session:
                    result = session.execute(
                        delete(self.table).where(self.table.c.id == entry_id)
                    )
                    session.commit()
            except SQLAlchemyError as e:
                self._report(
                    WriteError, f"Unable to acknowledge log entry {entry_id}", e, ErrorCode.WRITE_FAILURE
                )
                return False

        return result.rowcount == 1

    def count(self) -> int:
        """Number of pending entries, 0 if the queue could not be read."""
        with self._lock:
            if not self._check_usable(ReadError, ErrorCode.READ_FAILURE):
                return 0
            try:
                with self.session_factory() as session:
                    return session.execute(
                        select(func.count()).select_from(self.table)
                    ).scalar_one()
            except SQLAlchemyError as e:
                self._report(ReadError, "Unable to count the log queue", e, ErrorCode.READ_FAILURE)
                return 0

    def exists(self) -> bool:
        """Check whether the queue table exists in the storage file."""
        with self._lock:
            if self._engine is None:
                return False
            try:
                return self._table_exists(self._engine)
            except SQLAlchemyError as e:
                self._report(ReadError, "Unable to inspect the log queue", e, ErrorCode.READ_FAILURE)
                return False

    def close(self) -> None:
        """Release the storage connection. Safe to call more than once."""
        with self._lock:
            if self._engine is not None:
                logger.debug(f"Closing log queue {self.path}")
            self._dispose()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @override
    def __repr__(self) -> str:
        return f"<DurableQueueStore(path={self.path}, usable={self.usable})>"
