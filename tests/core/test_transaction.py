"""Tests for the settlement transaction boundary and row locking."""

from contextlib import contextmanager
from unittest.mock import Mock
from uuid import uuid4

import pytest

from clients.postgres_client import LockConflictError, PostgresClient, Transaction
from core.exceptions import ConflictError, NotFound
from core.transaction import LOCK_ORDER, atomic, lock_row


def _postgres_with(tx):
    """PostgresClient mock whose transaction() yields tx."""
    postgres = Mock(spec=PostgresClient)

    @contextmanager
    def transaction():
        yield tx

    postgres.transaction.side_effect = transaction
    return postgres


class TestAtomic:

    def test_yields_the_transaction(self):
        tx = Mock(spec=Transaction)

        with atomic(_postgres_with(tx)) as opened:
            assert opened is tx

    def test_lock_conflict_becomes_conflict_error(self):
        postgres = _postgres_with(Mock(spec=Transaction))

        with pytest.raises(ConflictError, match="retry"):
            with atomic(postgres):
                raise LockConflictError("could not obtain lock on row")

    def test_domain_errors_pass_through(self):
        postgres = _postgres_with(Mock(spec=Transaction))

        with pytest.raises(NotFound):
            with atomic(postgres):
                raise NotFound("booking", uuid4())


class TestLockRow:

    def test_lock_order_is_fixed(self):
        assert LOCK_ORDER == ("bookings", "quotations", "payments", "wallets")

    def test_uses_nowait_row_lock(self):
        tx = Mock(spec=Transaction)
        tx.execute_single.return_value = {"id": "b-1"}
        booking_id = uuid4()

        assert lock_row(tx, "bookings", "id", booking_id) == {"id": "b-1"}

        query, params = tx.execute_single.call_args[0]
        assert "FROM bookings WHERE id = %s FOR UPDATE NOWAIT" in query
        assert params == (booking_id,)

    def test_missing_row_returns_none(self):
        tx = Mock(spec=Transaction)
        tx.execute_single.return_value = None

        assert lock_row(tx, "wallets", "user_id", uuid4()) is None

    def test_unknown_table_rejected(self):
        with pytest.raises(ValueError, match="not lockable"):
            lock_row(Mock(spec=Transaction), "users", "id", uuid4())


class TestConcurrentLocks:
    """Two transactions contending for the same booking row (database)."""

    def test_second_locker_gets_conflict(self, services):
        from factories import create_booking

        booking = create_booking(services)
        postgres = services["booking"].postgres

        with atomic(postgres) as tx:
            lock_row(tx, "bookings", "id", booking.id)

            with pytest.raises(ConflictError):
                with atomic(postgres) as other:
                    lock_row(other, "bookings", "id", booking.id)
