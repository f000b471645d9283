"""
Transaction boundary for settlement operations.

Wraps PostgresClient.transaction() so database lock failures surface as the
domain's ConflictError. Row-locking helpers keep the SQL for
`SELECT ... FOR UPDATE NOWAIT` in one place.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator
from uuid import UUID

from clients.postgres_client import LockConflictError, PostgresClient, Transaction
from core.exceptions import ConflictError

logger = logging.getLogger(__name__)

# Tables that may be locked, in the order a transaction must lock them
LOCK_ORDER = ("bookings", "quotations", "payments", "wallets")


@contextmanager
def atomic(postgres: PostgresClient) -> Iterator[Transaction]:
    """
    Open a transaction; commit on success, roll back on any exception.

    Raises:
        ConflictError: If a row lock is held elsewhere or the transaction
            lost a serialization race. Retry the whole operation.
    """
    try:
        with postgres.transaction() as tx:
            yield tx
    except LockConflictError as e:
        raise ConflictError(
            "Resource is being modified by another operation, retry the request"
        ) from e


def lock_row(
    tx: Transaction,
    table: str,
    key_column: str,
    key: UUID
) -> dict[str, Any] | None:
    """
    Lock one row for the rest of the transaction without waiting.

    Returns:
        The row, or None if it does not exist
    """
    if table not in LOCK_ORDER:
        raise ValueError(f"Table '{table}' is not lockable")

    return tx.execute_single(
        f"SELECT * FROM {table} WHERE {key_column} = %s FOR UPDATE NOWAIT",
        (key,)
    )
