"""
Payment service for booking payments.

Records payments against bookings and keeps the booking's payment_id /
payment_status mirror in step. Gateway methods (moyasar, tabby) are only
tags here; capture happens upstream.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core.audit import AuditLogger
from core.exceptions import NotFound
from core.models import AuditAction, Payment, PaymentCreate, PaymentStatus
from core.transaction import atomic, lock_row
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for payment operations."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def create(self, data: PaymentCreate, actor_id: UUID) -> Payment:
        """
        Record a payment against a booking.

        The booking is locked first; a PAID payment becomes the booking's
        current payment.

        Raises:
            NotFound: If booking doesn't exist
        """
        payment_id = uuid4()
        now = now_utc()

        with atomic(self.postgres) as tx:
            if lock_row(tx, "bookings", "id", data.booking_id) is None:
                raise NotFound("booking", data.booking_id)

            row = tx.execute_returning(
                """
                INSERT INTO payments (
                    id, booking_id, user_id, amount, method, status,
                    gateway_transaction_id, created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    payment_id, data.booking_id, data.user_id, data.amount,
                    data.method.value, data.status.value,
                    data.gateway_transaction_id, now, now
                )
            )[0]

            payment = Payment.model_validate(row)

            if payment.status == PaymentStatus.PAID:
                tx.execute(
                    """
                    UPDATE bookings
                    SET payment_id = %s, payment_status = %s, updated_at = %s
                    WHERE id = %s
                    """,
                    (payment.id, payment.status.value, now, payment.booking_id)
                )

            self.audit.log_change(
                resource_type="payment",
                resource_id=payment.id,
                action=AuditAction.CREATE,
                old_values=None,
                new_values=data.model_dump(mode="json", exclude_none=True),
                user_id=actor_id,
                tx=tx,
            )

        return payment

    def get_by_id(self, payment_id: UUID, tx: Transaction | None = None) -> Payment | None:
        """
        Get payment by ID.

        Returns:
            Payment if found, None otherwise.
        """
        executor = tx if tx is not None else self.postgres
        row = executor.execute_single(
            "SELECT * FROM payments WHERE id = %s",
            (payment_id,)
        )

        if row is None:
            return None

        return Payment.model_validate(row)

    def list_for_booking(self, booking_id: UUID) -> list[Payment]:
        """List all payments for a booking, oldest first."""
        rows = self.postgres.execute(
            "SELECT * FROM payments WHERE booking_id = %s ORDER BY created_at",
            (booking_id,)
        )
        return [Payment.model_validate(row) for row in rows]

    def lock(self, tx: Transaction, payment_id: UUID) -> Payment:
        """
        Lock payment row for the rest of the transaction.

        Raises:
            NotFound: If payment doesn't exist
        """
        row = lock_row(tx, "payments", "id", payment_id)
        if row is None:
            raise NotFound("payment", payment_id)
        return Payment.model_validate(row)

    def mark_refunded(self, tx: Transaction, payment: Payment, reason: str) -> Payment:
        """
        Mark a locked, paid payment as fully refunded.

        Also flips the booking's payment_status mirror, so the caller must
        already hold the booking lock.

        Raises:
            RuntimeError: If the payment is no longer in paid status
        """
        now = now_utc()

        rows = tx.execute_returning(
            """
            UPDATE payments
            SET status = %s, refund_amount = amount, refund_reason = %s,
                refunded_at = %s, updated_at = %s
            WHERE id = %s AND status = %s
            RETURNING *
            """,
            (
                PaymentStatus.REFUNDED.value, reason, now, now,
                payment.id, PaymentStatus.PAID.value
            )
        )
        if not rows:
            raise RuntimeError(f"Payment {payment.id} is not in paid status")

        tx.execute(
            "UPDATE bookings SET payment_status = %s, updated_at = %s WHERE id = %s",
            (PaymentStatus.REFUNDED.value, now, payment.booking_id)
        )

        return Payment.model_validate(rows[0])
