# Core Module - SQLite Connection Helpers
#
# Every SecureVault store opens its connections through this module:
#
#   - WAL journal mode (API worker threads read while one writes)
#   - busy_timeout so concurrent writers wait instead of failing
#   - foreign_keys enforcement on every connection
#
# Stores open a fresh connection per call, so one store instance can be
# shared by FastAPI's threadpool without a connection-level lock.

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

BUSY_TIMEOUT_MS = 5000


def connect(
    db_path: Union[str, Path],
    *,
    row_factory: bool = True,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and safe PRAGMAs.

    Args:
        db_path: Path to the database file.
        row_factory: If True, rows come back as sqlite3.Row.

    Returns:
        sqlite3.Connection in autocommit mode; callers that write use
        ``transaction()`` instead.
    """
    conn = sqlite3.connect(str(db_path), isolation_level=None)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    conn.execute("PRAGMA foreign_keys=ON")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(db_path: Union[str, Path]) -> Iterator[sqlite3.Connection]:
    """Yield a connection inside ``BEGIN IMMEDIATE``.

    The write lock is taken up front, so a read-then-write sequence inside
    the block is an atomic check-and-set. Commits on success, rolls back on
    any exception, and always closes the connection.
    """
    conn = connect(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")
    finally:
        conn.close()


@contextmanager
def reader(db_path: Union[str, Path]) -> Iterator[sqlite3.Connection]:
    """Yield a short-lived read connection and close it afterwards."""
    conn = connect(db_path)
    try:
        yield conn
    finally:
        conn.close()
