"""
Booking service for booking persistence.

Creates bookings and reads them back. Status writes go through the
settlement coordinator, which locks the row with lock() and applies the
change with update() inside its own transaction.
"""

import logging
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core.audit import AuditLogger
from core.exceptions import NotFound
from core.models import AuditAction, Booking, BookingCreate, BookingStatus, PaymentStatus
from core.transaction import atomic, lock_row
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "status", "technician_id", "total_amount", "payment_id", "payment_status",
    "assigned_at", "started_at", "completed_at",
    "cancelled_at", "cancelled_by", "cancellation_reason",
}


class BookingService:
    """Service for booking operations."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def create(self, data: BookingCreate, actor_id: UUID) -> Booking:
        """
        Create a new booking.

        Args:
            data: Booking creation data
            actor_id: Admin creating the booking

        Returns:
            Created booking in PENDING status
        """
        booking_id = uuid4()
        now = now_utc()

        with atomic(self.postgres) as tx:
            row = tx.execute_returning(
                """
                INSERT INTO bookings (
                    id, customer_id, service_id, technician_id,
                    scheduled_date, scheduled_time, status,
                    total_amount, payment_id, payment_status, notes,
                    created_at, updated_at
                ) VALUES (
                    %s, %s, %s, NULL,
                    %s, %s, %s,
                    %s, NULL, %s, %s,
                    %s, %s
                )
                RETURNING *
                """,
                (
                    booking_id, data.customer_id, data.service_id,
                    data.scheduled_date, data.scheduled_time, BookingStatus.PENDING.value,
                    data.total_amount, PaymentStatus.PENDING.value, data.notes,
                    now, now
                )
            )[0]

            booking = Booking.model_validate(row)

            self.audit.log_change(
                resource_type="booking",
                resource_id=booking.id,
                action=AuditAction.CREATE,
                old_values=None,
                new_values=data.model_dump(mode="json", exclude_none=True),
                user_id=actor_id,
                tx=tx,
            )

        return booking

    def get_by_id(self, booking_id: UUID, tx: Transaction | None = None) -> Booking | None:
        """
        Get booking by ID.

        Returns:
            Booking if found, None otherwise.
        """
        executor = tx if tx is not None else self.postgres
        row = executor.execute_single(
            "SELECT * FROM bookings WHERE id = %s",
            (booking_id,)
        )

        if row is None:
            return None

        return Booking.model_validate(row)

    def list_all(
        self,
        status: BookingStatus | None = None,
        customer_id: UUID | None = None,
        limit: int = 50
    ) -> list[Booking]:
        """
        List bookings, newest first.

        Args:
            status: Only bookings in this status
            customer_id: Only this customer's bookings
            limit: Maximum rows
        """
        conditions = []
        params: list[Any] = []

        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)
        if customer_id is not None:
            conditions.append("customer_id = %s")
            params.append(customer_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(limit)

        rows = self.postgres.execute(
            f"SELECT * FROM bookings {where} ORDER BY created_at DESC LIMIT %s",
            tuple(params)
        )
        return [Booking.model_validate(row) for row in rows]

    def lock(self, tx: Transaction, booking_id: UUID) -> Booking:
        """
        Lock booking row for the rest of the transaction.

        Raises:
            NotFound: If booking doesn't exist
            LockConflictError: If another operation holds the lock (atomic() turns it into ConflictError)
        """
        row = lock_row(tx, "bookings", "id", booking_id)
        if row is None:
            raise NotFound("booking", booking_id)
        return Booking.model_validate(row)

    def update(self, tx: Transaction, booking_id: UUID, updates: dict[str, Any]) -> Booking:
        """
        Write column updates to a locked booking.

        Unknown columns are dropped with a warning. Caller validates the
        transition and writes the audit entry.
        """
        for field in updates:
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(
                    f"Attempted to update unknown field '{field}' on booking {booking_id}"
                )

        valid_updates = {k: v for k, v in updates.items() if k in _UPDATABLE_COLUMNS}

        set_parts = []
        params = []
        for field, value in valid_updates.items():
            set_parts.append(f"{field} = %s")
            params.append(value.value if isinstance(value, Enum) else value)

        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.append(booking_id)

        row = tx.execute_returning(
            f"""
            UPDATE bookings
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]

        return Booking.model_validate(row)
