"""
PostgreSQL client with connection pooling and explicit transactions.

Uses psycopg2 with ThreadedConnectionPool. execute*() commits each statement
on its own; multi-statement operations run inside transaction(), which
commits on success and rolls back on any exception.

Lock and serialization failures inside a transaction are raised as
LockConflictError so callers can translate them into a retryable error.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.errors
import psycopg2.extensions
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

_jsonb_registered = False


def _register_jsonb() -> None:
    """Decode JSONB columns to Python objects on every connection, once per process."""
    global _jsonb_registered
    if not _jsonb_registered:
        psycopg2.extras.register_default_jsonb(globally=True)
        _jsonb_registered = True


_CONFLICT_ERRORS = (
    psycopg2.errors.LockNotAvailable,
    psycopg2.errors.SerializationFailure,
    psycopg2.errors.DeadlockDetected,
)


class LockConflictError(Exception):
    """A row lock could not be taken or the transaction lost a serialization race."""


def _convert_params(params: Tuple | Dict | None) -> Tuple | Dict | None:
    """Convert UUID objects to strings."""
    if params is None:
        return None

    def convert(value: Any) -> Any:
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, list):
            return [convert(v) for v in value]
        if isinstance(value, tuple):
            return tuple(convert(v) for v in value)
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        return value

    return convert(params)


class Transaction:
    """
    Query interface bound to one open transaction.

    Same method names as PostgresClient, so services can run the same SQL
    inside or outside a transaction.
    """

    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        self._cursor.execute(query, _convert_params(params))
        if self._cursor.description:
            return [dict(row) for row in self._cursor.fetchall()]
        return []

    def execute_single(self, query: str, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_scalar(self, query: str, params: Tuple | Dict | None = None) -> Any:
        """Execute query, return first value of first row or None."""
        row = self.execute_single(query, params)
        return next(iter(row.values())) if row else None

    def execute_returning(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute INSERT/UPDATE with RETURNING, return results."""
        return self.execute(query, params)


class PostgresClient:
    """
    Pooled PostgreSQL access.

    Usage:
        db = PostgresClient(database_url)

        rows = db.execute("SELECT * FROM bookings WHERE status = %s", ("pending",))

        with db.transaction() as tx:
            booking = tx.execute_single(
                "SELECT * FROM bookings WHERE id = %s FOR UPDATE NOWAIT", (booking_id,)
            )
            tx.execute("UPDATE bookings SET status = %s WHERE id = %s", ("confirmed", booking_id))

    One pool per DSN is shared by every client built for that DSN.
    """

    _pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, min_connections: int = 2, max_connections: int = 20):
        self._database_url = database_url
        self._min_connections = min_connections
        self._max_connections = max_connections
        self._pool()

    def _pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        with self._pools_lock:
            pool = self._pools.get(self._database_url)
            if pool is None:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._min_connections,
                    maxconn=self._max_connections,
                    dsn=self._database_url,
                    connect_timeout=30,
                )
                _register_jsonb()
                self._pools[self._database_url] = pool
                logger.info(
                    f"Connection pool created ({self._min_connections}-{self._max_connections} connections)"
                )
            return pool

    @contextmanager
    def _borrow(self):
        """Pooled connection; whatever it left open is rolled back before it goes back."""
        pool = self._pool()
        conn = pool.getconn()
        try:
            yield conn
        finally:
            if not conn.closed and conn.status != psycopg2.extensions.STATUS_READY:
                conn.rollback()
            pool.putconn(conn)

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Run several statements atomically.

        Commits when the block exits normally, rolls back on any exception.

        Raises:
            LockConflictError: On NOWAIT lock failure, serialization failure or deadlock
        """
        with self._borrow() as conn:
            try:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    yield Transaction(cur)
                conn.commit()
            except _CONFLICT_ERRORS as e:
                conn.rollback()
                logger.warning(f"Transaction conflict: {e.__class__.__name__}")
                raise LockConflictError(str(e).strip()) from e
            except BaseException:
                conn.rollback()
                raise

    # Single statements run in their own short transaction

    def execute(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        with self.transaction() as tx:
            return tx.execute(query, params)

    def execute_single(self, query: str, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        with self.transaction() as tx:
            return tx.execute_single(query, params)

    def execute_scalar(self, query: str, params: Tuple | Dict | None = None) -> Any:
        with self.transaction() as tx:
            return tx.execute_scalar(query, params)

    def execute_returning(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        with self.transaction() as tx:
            return tx.execute_returning(query, params)

    def close(self) -> None:
        """Close this DSN's pool."""
        with self._pools_lock:
            pool = self._pools.pop(self._database_url, None)
            if pool is not None:
                pool.closeall()
