"""
Settlement coordinator.

Orchestrates every admin action that touches more than one aggregate:
status changes, technician assignment, cancellation, quotations, refunds and
wallet top-ups. Each public method is one database transaction; entity
writes and audit entries commit or roll back together. Rows are locked in
the fixed order booking -> quotation -> payment -> wallet.

Domain events are published only after the transaction has committed.
"""

import logging
from decimal import Decimal
from uuid import UUID

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, compute_changes, split_changes
from core.config import SettlementConfig
from core.event_bus import EventBus
from core.events import (
    BookingCancelled, BookingStatusChanged, PaymentRefunded, QuotationCreated,
    QuotationDecided, TechnicianAssigned, WalletCredited,
)
from core.exceptions import InvalidAssignment, InvalidTransition, NotFound, ValidationError
from core.models import (
    AuditAction, Booking, BookingDetail, BookingStatus, PaymentStatus, Quotation,
    QuotationCreate, QuotationDecision, QuotationDecisionResult, QuotationStatus,
    ReferenceType, RefundResult, TopUpResult, UserRole, UserStatus,
)
from core.money import require_positive_amount
from core.quotation_calculator import compute_quotation
from core.services.booking_service import BookingService
from core.services.payment_service import PaymentService
from core.services.quotation_service import QuotationService
from core.services.user_service import UserService
from core.services.wallet_service import WalletService
from core.state_machine import assert_transition
from core.transaction import atomic
from core.validation import require_reason
from utils.timezone import has_passed, hours_from, now_utc

logger = logging.getLogger(__name__)

# Booking fields recorded in status audit entries
_AUDITED_BOOKING_FIELDS = (
    "status", "technician_id", "total_amount", "payment_status", "cancellation_reason",
)


def _booking_snapshot(booking: Booking) -> dict:
    dumped = booking.model_dump(mode="json")
    return {field: dumped[field] for field in _AUDITED_BOOKING_FIELDS}


def _status_timestamps(booking: Booking, target: BookingStatus) -> dict:
    """Timestamp columns set when a booking enters target."""
    now = now_utc()
    updates = {}
    if target == BookingStatus.IN_PROGRESS and booking.started_at is None:
        updates["started_at"] = now
    if target == BookingStatus.COMPLETED:
        updates["completed_at"] = now
    return updates


class SettlementService:
    """Coordinator for cross-aggregate booking and settlement operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        bookings: BookingService,
        quotations: QuotationService,
        payments: PaymentService,
        wallets: WalletService,
        users: UserService,
        event_bus: EventBus,
        config: SettlementConfig | None = None
    ):
        self.postgres = postgres
        self.audit = audit
        self.bookings = bookings
        self.quotations = quotations
        self.payments = payments
        self.wallets = wallets
        self.users = users
        self.event_bus = event_bus
        self.config = config or SettlementConfig()

    def _audit_booking(self, tx, before: Booking, after: Booking, action: AuditAction, actor_id: UUID):
        changes = compute_changes(_booking_snapshot(before), _booking_snapshot(after))
        old_values, new_values = split_changes(changes)
        self.audit.log_change(
            resource_type="booking",
            resource_id=after.id,
            action=action,
            old_values=old_values,
            new_values=new_values,
            user_id=actor_id,
            tx=tx,
        )

    # =========================================================================
    # BOOKING LIFECYCLE
    # =========================================================================

    def change_status(
        self,
        booking_id: UUID,
        status: BookingStatus,
        actor_id: UUID,
        reason: str | None = None
    ) -> Booking:
        """
        Move a booking to a new status through the state machine.

        Cancellation is delegated to cancel_booking(), which requires reason.

        Raises:
            NotFound: If booking doesn't exist
            InvalidTransition: If the state machine rejects the change, or the
                booking would complete with a quotation still pending
            ConflictError: If the booking is locked by another operation
        """
        if status == BookingStatus.CANCELLED:
            return self.cancel_booking(booking_id, reason, actor_id)

        with atomic(self.postgres) as tx:
            booking = self.bookings.lock(tx, booking_id)
            assert_transition(booking.status, status)

            if status == BookingStatus.COMPLETED and self.quotations.has_pending(tx, booking.id):
                raise InvalidTransition(
                    booking.status.value, status.value, "booking has a pending quotation"
                )

            updated = self.bookings.update(
                tx, booking.id, {"status": status, **_status_timestamps(booking, status)}
            )
            self._audit_booking(tx, booking, updated, AuditAction.STATUS_CHANGE, actor_id)

        logger.info(f"Booking {booking_id}: {booking.status.value} -> {status.value}")
        self.event_bus.publish(BookingStatusChanged.create(updated, booking.status.value, actor_id))
        return updated

    def cancel_booking(self, booking_id: UUID, reason: str | None, actor_id: UUID) -> Booking:
        """
        Cancel a non-terminal booking.

        Clears the technician and records who cancelled and why. Never refunds;
        use refund_payment() separately.

        Raises:
            ValidationError: If reason is blank
            NotFound: If booking doesn't exist
            InvalidTransition: If booking is already completed or cancelled
        """
        reason = require_reason(reason)

        with atomic(self.postgres) as tx:
            booking = self.bookings.lock(tx, booking_id)
            assert_transition(booking.status, BookingStatus.CANCELLED, side_effect=True)

            updated = self.bookings.update(tx, booking.id, {
                "status": BookingStatus.CANCELLED,
                "technician_id": None,
                "cancelled_at": now_utc(),
                "cancelled_by": actor_id,
                "cancellation_reason": reason,
            })
            self._audit_booking(tx, booking, updated, AuditAction.CANCEL, actor_id)

        logger.info(f"Booking {booking_id} cancelled from {booking.status.value}")
        self.event_bus.publish(BookingCancelled.create(
            updated, booking.status.value, booking.technician_id, actor_id
        ))
        return updated

    def assign_technician(self, booking_id: UUID, technician_id: UUID, actor_id: UUID) -> Booking:
        """
        Assign an active technician to a confirmed booking.

        Raises:
            InvalidAssignment: If technician_id is not an active technician
            NotFound: If booking doesn't exist
            InvalidTransition: If booking is not confirmed
        """
        with atomic(self.postgres) as tx:
            booking = self.bookings.lock(tx, booking_id)

            technician = self.users.get_by_id(technician_id, tx)
            if technician is None or technician.role != UserRole.TECHNICIAN:
                raise InvalidAssignment(f"Technician {technician_id} not found")
            if technician.status != UserStatus.ACTIVE:
                raise InvalidAssignment(
                    f"Technician {technician_id} is {technician.status.value}, not active"
                )

            assert_transition(booking.status, BookingStatus.TECHNICIAN_ASSIGNED, side_effect=True)

            updated = self.bookings.update(tx, booking.id, {
                "status": BookingStatus.TECHNICIAN_ASSIGNED,
                "technician_id": technician_id,
                "assigned_at": now_utc(),
            })
            self._audit_booking(tx, booking, updated, AuditAction.STATUS_CHANGE, actor_id)

        logger.info(f"Booking {booking_id} assigned to technician {technician_id}")
        self.event_bus.publish_all([
            TechnicianAssigned.create(updated, actor_id),
            BookingStatusChanged.create(updated, booking.status.value, actor_id),
        ])
        return updated

    # =========================================================================
    # QUOTATIONS
    # =========================================================================

    def create_quotation(self, data: QuotationCreate, actor_id: UUID) -> Quotation:
        """
        Raise a quotation for extra work on an in-progress booking.

        Computes totals, stores the quotation with its line items and moves
        the booking to quotation_pending.

        Raises:
            ValidationError: On bad amounts or too many line items
            InvalidAssignment: If technician is unknown or not the booking's technician
            NotFound: If booking doesn't exist
            InvalidTransition: If booking is not in progress
        """
        if len(data.spare_parts) > self.config.max_quotation_line_items:
            raise ValidationError(
                f"A quotation can have at most {self.config.max_quotation_line_items} "
                f"spare parts, got {len(data.spare_parts)}"
            )

        totals = compute_quotation(data.additional_cost, data.spare_parts, self.config.vat_rate)

        with atomic(self.postgres) as tx:
            booking = self.bookings.lock(tx, data.booking_id)

            technician = self.users.get_by_id(data.technician_id, tx)
            if technician is None or technician.role != UserRole.TECHNICIAN:
                raise InvalidAssignment(f"Technician {data.technician_id} not found")
            if booking.technician_id is not None and booking.technician_id != data.technician_id:
                raise InvalidAssignment(
                    f"Technician {data.technician_id} is not assigned to booking {booking.id}"
                )

            if booking.status not in (BookingStatus.IN_PROGRESS, BookingStatus.QUOTATION_PENDING):
                raise InvalidTransition(
                    booking.status.value,
                    BookingStatus.QUOTATION_PENDING.value,
                    "quotations can only be raised while work is in progress",
                )

            now = now_utc()
            quotation = self.quotations.insert(
                tx, data, totals, self.config.vat_rate,
                hours_from(now, self.config.quotation_expiry_hours), actor_id
            )

            updated = booking
            if booking.status == BookingStatus.IN_PROGRESS:
                assert_transition(booking.status, BookingStatus.QUOTATION_PENDING, side_effect=True)
                updated = self.bookings.update(
                    tx, booking.id, {"status": BookingStatus.QUOTATION_PENDING}
                )
                self._audit_booking(tx, booking, updated, AuditAction.STATUS_CHANGE, actor_id)

        logger.info(f"Quotation {quotation.id} raised on booking {booking.id}: {quotation.total_amount}")

        events = [QuotationCreated.create(quotation, updated, actor_id)]
        if updated.status != booking.status:
            events.append(BookingStatusChanged.create(updated, booking.status.value, actor_id))
        self.event_bus.publish_all(events)

        return quotation

    def approve_or_reject_quotation(
        self,
        quotation_id: UUID,
        decision: QuotationDecision,
        actor_id: UUID,
        complete_booking: bool | None = None
    ) -> QuotationDecisionResult:
        """
        Decide a pending quotation.

        Approval sets the booking total to the quotation total and either
        resumes work or completes the booking (complete_booking, defaulting
        to config.approval_completes_booking). Rejection leaves the total
        unchanged. Either way the booking only leaves quotation_pending once
        no other quotation on it is pending.

        Raises:
            NotFound: If quotation doesn't exist
            InvalidTransition: If the quotation is already decided or expired,
                or the booking is not waiting on a quotation
        """
        existing = self.quotations.get_by_id(quotation_id)
        if existing is None:
            raise NotFound("quotation", quotation_id)

        target_status = QuotationStatus(decision.value)
        completes = self.config.approval_completes_booking if complete_booking is None else complete_booking

        with atomic(self.postgres) as tx:
            booking = self.bookings.lock(tx, existing.booking_id)
            quotation = self.quotations.lock(tx, quotation_id)

            if not quotation.is_pending:
                raise InvalidTransition(
                    quotation.status.value, target_status.value, "quotation already decided"
                )
            if booking.status != BookingStatus.QUOTATION_PENDING:
                raise InvalidTransition(
                    booking.status.value,
                    BookingStatus.IN_PROGRESS.value,
                    "booking is not waiting on a quotation",
                )
            if decision == QuotationDecision.APPROVED and has_passed(quotation.expires_at):
                raise InvalidTransition(
                    quotation.status.value,
                    target_status.value,
                    f"quotation expired at {quotation.expires_at.isoformat()}",
                )

            others_pending = self.quotations.has_pending(tx, booking.id, exclude_id=quotation.id)

            updates = {}
            if decision == QuotationDecision.APPROVED:
                updates["total_amount"] = quotation.total_amount
                if completes:
                    if others_pending:
                        raise InvalidTransition(
                            booking.status.value,
                            BookingStatus.COMPLETED.value,
                            "booking has other pending quotations",
                        )
                    next_status = BookingStatus.COMPLETED
                else:
                    next_status = BookingStatus.IN_PROGRESS
            else:
                next_status = BookingStatus.IN_PROGRESS

            if not others_pending:
                assert_transition(booking.status, next_status, side_effect=True)
                updates["status"] = next_status
                updates.update(_status_timestamps(booking, next_status))

            decided = self.quotations.decide(tx, quotation, target_status, actor_id)

            updated = booking
            if updates:
                updated = self.bookings.update(tx, booking.id, updates)
                action = AuditAction.STATUS_CHANGE if "status" in updates else AuditAction.UPDATE
                self._audit_booking(tx, booking, updated, action, actor_id)

        logger.info(
            f"Quotation {quotation_id} {decided.status.value}; "
            f"booking {booking.id} {booking.status.value} -> {updated.status.value}"
        )

        events = [QuotationDecided.create(decided, updated, actor_id)]
        if updated.status != booking.status:
            events.append(BookingStatusChanged.create(updated, booking.status.value, actor_id))
        self.event_bus.publish_all(events)

        return QuotationDecisionResult(quotation=decided, booking=updated)

    # =========================================================================
    # MONEY
    # =========================================================================

    def refund_payment(
        self,
        booking_id: UUID,
        payment_id: UUID,
        reason: str,
        actor_id: UUID
    ) -> RefundResult:
        """
        Refund a booking's paid payment into the payer's wallet.

        Raises:
            ValidationError: If reason is blank
            NotFound: If booking or payment doesn't exist, or the payment
                belongs to another booking
            InvalidTransition: If payment is not paid or the booking status
                does not allow refunds
        """
        reason = require_reason(reason)

        with atomic(self.postgres) as tx:
            booking = self.bookings.lock(tx, booking_id)
            payment = self.payments.lock(tx, payment_id)

            if payment.booking_id != booking.id:
                raise NotFound("payment", payment_id)

            if booking.status.value not in self.config.refundable_booking_statuses:
                allowed = ", ".join(sorted(self.config.refundable_booking_statuses))
                raise InvalidTransition(
                    booking.status.value,
                    PaymentStatus.REFUNDED.value,
                    f"refunds require a booking in: {allowed}",
                )

            refunded, wallet, transaction = self.wallets.apply_refund(tx, payment, reason, actor_id)
            updated = self.bookings.get_by_id(booking.id, tx)

        logger.info(
            f"Payment {payment_id} on booking {booking_id} refunded "
            f"{refunded.refund_amount} to wallet {wallet.user_id}"
        )
        self.event_bus.publish(PaymentRefunded.create(refunded, updated, wallet, actor_id))

        return RefundResult(payment=refunded, booking=updated, wallet=wallet, transaction=transaction)

    def top_up_wallet(self, user_id: UUID, amount: Decimal, reason: str, actor_id: UUID) -> TopUpResult:
        """
        Credit a customer's wallet by admin action.

        Raises:
            ValidationError: If amount <= 0, has sub-cent precision, or reason is blank
            NotFound: If user_id is not a customer
        """
        amount = require_positive_amount(amount)
        reason = require_reason(reason)

        with atomic(self.postgres) as tx:
            if self.users.get_customer(user_id, tx) is None:
                raise NotFound("customer", user_id)

            wallet, transaction = self.wallets.apply_credit(
                tx, user_id, amount, reason, actor_id, reference_type=ReferenceType.TOPUP
            )

        logger.info(f"Wallet {user_id} topped up {amount} by {actor_id}, balance {wallet.balance}")
        self.event_bus.publish(WalletCredited.create(wallet, transaction, actor_id))

        return TopUpResult(wallet=wallet, transaction=transaction)

    # =========================================================================
    # READS
    # =========================================================================

    def get_booking_detail(self, booking_id: UUID) -> BookingDetail:
        """
        Booking with its quotations and payments.

        Raises:
            NotFound: If booking doesn't exist
        """
        booking = self.bookings.get_by_id(booking_id)
        if booking is None:
            raise NotFound("booking", booking_id)

        return BookingDetail(
            booking=booking,
            quotations=self.quotations.list_for_booking(booking_id),
            payments=self.payments.list_for_booking(booking_id),
        )

    def get_quotation(self, quotation_id: UUID) -> Quotation:
        """
        Quotation with line items.

        Raises:
            NotFound: If quotation doesn't exist
        """
        quotation = self.quotations.get_by_id(quotation_id)
        if quotation is None:
            raise NotFound("quotation", quotation_id)
        return quotation
