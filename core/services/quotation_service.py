"""
Quotation service for quotation persistence.

Stores quotations with their spare part lines and records decisions.
Totals are computed by core.quotation_calculator before insert; the
settlement coordinator owns the booking side effects.
"""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core.audit import AuditLogger
from core.exceptions import NotFound
from core.models import (
    AuditAction, Quotation, QuotationCreate, QuotationLineItem, QuotationStatus, QuotationTotals,
)
from core.quotation_calculator import additional_cost_of, line_total, unit_price_of
from core.transaction import lock_row
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class QuotationService:
    """Service for quotation operations."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def _load_line_items(self, executor, quotation_ids: list[UUID]) -> dict[UUID, list[QuotationLineItem]]:
        """Fetch line items for several quotations, grouped by quotation_id."""
        if not quotation_ids:
            return {}

        rows = executor.execute(
            """
            SELECT * FROM quotation_line_items
            WHERE quotation_id = ANY(%s::uuid[])
            ORDER BY quotation_id, id
            """,
            (list(quotation_ids),)
        )

        grouped: dict[UUID, list[QuotationLineItem]] = {}
        for row in rows:
            item = QuotationLineItem.model_validate(row)
            grouped.setdefault(item.quotation_id, []).append(item)
        return grouped

    def _hydrate(self, executor, rows: list[dict]) -> list[Quotation]:
        quotations = [Quotation.model_validate(row) for row in rows]
        items = self._load_line_items(executor, [q.id for q in quotations])
        return [
            q.model_copy(update={"line_items": items.get(q.id, [])})
            for q in quotations
        ]

    def get_by_id(self, quotation_id: UUID, tx: Transaction | None = None) -> Quotation | None:
        """
        Get quotation by ID, with line items.

        Returns:
            Quotation if found, None otherwise.
        """
        executor = tx if tx is not None else self.postgres
        row = executor.execute_single(
            "SELECT * FROM quotations WHERE id = %s",
            (quotation_id,)
        )

        if row is None:
            return None

        return self._hydrate(executor, [row])[0]

    def list_for_booking(self, booking_id: UUID) -> list[Quotation]:
        """List all quotations raised on a booking, oldest first."""
        rows = self.postgres.execute(
            "SELECT * FROM quotations WHERE booking_id = %s ORDER BY created_at",
            (booking_id,)
        )
        return self._hydrate(self.postgres, rows)

    def lock(self, tx: Transaction, quotation_id: UUID) -> Quotation:
        """
        Lock quotation row for the rest of the transaction.

        Raises:
            NotFound: If quotation doesn't exist
        """
        row = lock_row(tx, "quotations", "id", quotation_id)
        if row is None:
            raise NotFound("quotation", quotation_id)
        return self._hydrate(tx, [row])[0]

    def has_pending(
        self,
        tx: Transaction,
        booking_id: UUID,
        exclude_id: UUID | None = None
    ) -> bool:
        """Whether the booking has a pending quotation other than exclude_id."""
        count = tx.execute_scalar(
            """
            SELECT COUNT(*) FROM quotations
            WHERE booking_id = %s AND status = %s AND id IS DISTINCT FROM %s
            """,
            (booking_id, QuotationStatus.PENDING.value, exclude_id)
        )
        return bool(count)

    def insert(
        self,
        tx: Transaction,
        data: QuotationCreate,
        totals: QuotationTotals,
        vat_rate: Decimal,
        expires_at: datetime,
        actor_id: UUID
    ) -> Quotation:
        """
        Store a pending quotation and its line items.

        Args:
            tx: Open transaction holding the booking lock
            data: Validated creation data
            totals: Calculator output for data
            vat_rate: Rate the totals were computed with
            expires_at: Decision deadline
            actor_id: Admin raising the quotation

        Returns:
            Stored quotation with line items
        """
        quotation_id = uuid4()
        now = now_utc()

        row = tx.execute_returning(
            """
            INSERT INTO quotations (
                id, booking_id, technician_id, status,
                additional_cost, spare_parts_total, vat_rate, vat_amount, total_amount,
                notes, expires_at, created_at
            ) VALUES (
                %s, %s, %s, %s,
                %s, %s, %s, %s, %s,
                %s, %s, %s
            )
            RETURNING *
            """,
            (
                quotation_id, data.booking_id, data.technician_id, QuotationStatus.PENDING.value,
                additional_cost_of(data.additional_cost),
                totals.spare_parts_total, vat_rate, totals.vat_amount, totals.total_amount,
                data.notes, expires_at, now
            )
        )[0]

        line_items = []
        for line in data.spare_parts:
            item_row = tx.execute_returning(
                """
                INSERT INTO quotation_line_items (
                    id, quotation_id, spare_part_id, quantity, unit_price, total_price
                ) VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    uuid4(), quotation_id, line.spare_part_id, line.quantity,
                    unit_price_of(line), line_total(line)
                )
            )[0]
            line_items.append(QuotationLineItem.model_validate(item_row))

        quotation = Quotation.model_validate(row).model_copy(update={"line_items": line_items})

        self.audit.log_change(
            resource_type="quotation",
            resource_id=quotation.id,
            action=AuditAction.CREATE,
            old_values=None,
            new_values=quotation.model_dump(mode="json"),
            user_id=actor_id,
            tx=tx,
        )

        return quotation

    def decide(
        self,
        tx: Transaction,
        quotation: Quotation,
        status: QuotationStatus,
        actor_id: UUID
    ) -> Quotation:
        """Record an approval or rejection on a locked, pending quotation."""
        row = tx.execute_returning(
            """
            UPDATE quotations
            SET status = %s, decided_at = %s, decided_by = %s
            WHERE id = %s
            RETURNING *
            """,
            (status.value, now_utc(), actor_id, quotation.id)
        )[0]

        decided = Quotation.model_validate(row).model_copy(
            update={"line_items": quotation.line_items}
        )

        self.audit.log_change(
            resource_type="quotation",
            resource_id=quotation.id,
            action=AuditAction.STATUS_CHANGE,
            old_values={"status": quotation.status.value},
            new_values={
                "status": decided.status.value,
                "decided_by": str(actor_id),
                "total_amount": decided.total_amount,
            },
            user_id=actor_id,
            tx=tx,
        )

        return decided
