"""
Wallet ledger service.

Per-user balance with an append-only transaction history. A wallet is only
ever changed by applying one ledger entry, and both rows are written in the
same transaction together with an audit entry:

    balance == total_earned - total_spent == sum(credits) - sum(debits)

Wallet rows are created lazily on the first credit or debit and locked with
FOR UPDATE NOWAIT for every mutation.
"""

import logging
from decimal import Decimal
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient, Transaction
from core.audit import AuditLogger
from core.exceptions import InvalidTransition, NotFound
from core.models import (
    AuditAction, Booking, Payment, PaymentStatus, ReferenceType, RefundResult,
    TransactionType, WalletAccount, WalletReconciliation, WalletSummary, WalletTransaction,
)
from core.money import ZERO, require_positive_amount
from core.services.payment_service import PaymentService
from core.services.user_service import UserService
from core.transaction import atomic, lock_row
from core.validation import require_reason
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class WalletService:
    """Service for wallet ledger operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        payments: PaymentService,
        users: UserService
    ):
        self.postgres = postgres
        self.audit = audit
        self.payments = payments
        self.users = users

    # =========================================================================
    # LEDGER PRIMITIVES (caller owns the transaction)
    # =========================================================================

    def lock_wallet(self, tx: Transaction, user_id: UUID) -> WalletAccount:
        """
        Lock the user's wallet, creating an empty one first if needed.

        Raises:
            NotFound: If the user doesn't exist
        """
        if self.users.get_by_id(user_id, tx) is None:
            raise NotFound("user", user_id)

        now = now_utc()
        tx.execute(
            """
            INSERT INTO wallets (user_id, balance, total_earned, total_spent, created_at, updated_at)
            VALUES (%s, 0, 0, 0, %s, %s)
            ON CONFLICT (user_id) DO NOTHING
            """,
            (user_id, now, now)
        )

        return WalletAccount.model_validate(lock_row(tx, "wallets", "user_id", user_id))

    def _apply(
        self,
        tx: Transaction,
        user_id: UUID,
        tx_type: TransactionType,
        amount: Decimal,
        reason: str,
        actor_id: UUID,
        reference_type: ReferenceType,
        related_booking_id: UUID | None
    ) -> tuple[WalletAccount, WalletTransaction]:
        amount = require_positive_amount(amount)
        reason = require_reason(reason)

        current = self.lock_wallet(tx, user_id)
        if tx_type == TransactionType.CREDIT:
            target = current.with_credit(amount)
        else:
            target = current.with_debit(amount)

        now = now_utc()

        wallet_row = tx.execute_returning(
            """
            UPDATE wallets
            SET balance = %s, total_earned = %s, total_spent = %s, updated_at = %s
            WHERE user_id = %s
            RETURNING *
            """,
            (target.balance, target.total_earned, target.total_spent, now, user_id)
        )[0]
        wallet = WalletAccount.model_validate(wallet_row)

        txn_row = tx.execute_returning(
            """
            INSERT INTO wallet_transactions (
                id, user_id, type, amount, balance_before, balance_after,
                reason, reference_type, related_booking_id, created_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING *
            """,
            (
                uuid4(), user_id, tx_type.value, amount, current.balance, wallet.balance,
                reason, reference_type.value, related_booking_id, now
            )
        )[0]
        transaction = WalletTransaction.model_validate(txn_row)

        self.audit.log_change(
            resource_type="wallet",
            resource_id=user_id,
            action=AuditAction.REFUND if reference_type == ReferenceType.REFUND else AuditAction.UPDATE,
            old_values={"balance": current.balance},
            new_values={
                "balance": wallet.balance,
                "amount": amount,
                "type": tx_type.value,
                "reason": reason,
                "reference_type": reference_type.value,
                "transaction_id": transaction.id,
            },
            user_id=actor_id,
            tx=tx,
        )

        return wallet, transaction

    def apply_credit(
        self,
        tx: Transaction,
        user_id: UUID,
        amount: Decimal,
        reason: str,
        actor_id: UUID,
        reference_type: ReferenceType = ReferenceType.ADJUSTMENT,
        related_booking_id: UUID | None = None
    ) -> tuple[WalletAccount, WalletTransaction]:
        """Credit inside an open transaction. Returns (wallet, ledger entry)."""
        return self._apply(
            tx, user_id, TransactionType.CREDIT, amount, reason,
            actor_id, reference_type, related_booking_id
        )

    def apply_debit(
        self,
        tx: Transaction,
        user_id: UUID,
        amount: Decimal,
        reason: str,
        actor_id: UUID,
        reference_type: ReferenceType = ReferenceType.PURCHASE,
        related_booking_id: UUID | None = None
    ) -> tuple[WalletAccount, WalletTransaction]:
        """
        Debit inside an open transaction. Returns (wallet, ledger entry).

        Raises:
            InsufficientBalance: If amount exceeds the balance
        """
        return self._apply(
            tx, user_id, TransactionType.DEBIT, amount, reason,
            actor_id, reference_type, related_booking_id
        )

    def apply_refund(
        self,
        tx: Transaction,
        payment: Payment,
        reason: str,
        actor_id: UUID
    ) -> tuple[Payment, WalletAccount, WalletTransaction]:
        """
        Refund a locked, paid payment into the payer's wallet.

        Caller must hold the booking and payment locks.

        Raises:
            InvalidTransition: If the payment is not paid
        """
        if not payment.is_refundable:
            raise InvalidTransition(
                payment.status.value,
                PaymentStatus.REFUNDED.value,
                "only paid payments can be refunded",
            )

        reason = require_reason(reason)
        refunded = self.payments.mark_refunded(tx, payment, reason)

        self.audit.log_change(
            resource_type="payment",
            resource_id=payment.id,
            action=AuditAction.REFUND,
            old_values={"status": payment.status.value, "refund_amount": payment.refund_amount},
            new_values={
                "status": refunded.status.value,
                "refund_amount": refunded.refund_amount,
                "refund_reason": reason,
            },
            user_id=actor_id,
            tx=tx,
        )

        wallet, transaction = self.apply_credit(
            tx,
            payment.user_id,
            payment.amount,
            reason,
            actor_id,
            reference_type=ReferenceType.REFUND,
            related_booking_id=payment.booking_id,
        )

        return refunded, wallet, transaction

    # =========================================================================
    # STANDALONE OPERATIONS
    # =========================================================================

    def credit(
        self,
        user_id: UUID,
        amount: Decimal,
        reason: str,
        actor_id: UUID,
        related_booking_id: UUID | None = None,
        reference_type: ReferenceType = ReferenceType.ADJUSTMENT
    ) -> WalletTransaction:
        """
        Credit a wallet in its own transaction.

        Raises:
            ValidationError: If amount <= 0, has sub-cent precision, or reason is blank
            NotFound: If the user doesn't exist
        """
        with atomic(self.postgres) as tx:
            wallet, transaction = self.apply_credit(
                tx, user_id, amount, reason, actor_id, reference_type, related_booking_id
            )

        logger.info(f"Wallet {user_id} credited {transaction.amount}, balance {wallet.balance}")
        return transaction

    def debit(
        self,
        user_id: UUID,
        amount: Decimal,
        reason: str,
        actor_id: UUID,
        related_booking_id: UUID | None = None,
        reference_type: ReferenceType = ReferenceType.PURCHASE
    ) -> WalletTransaction:
        """
        Debit a wallet in its own transaction.

        Raises:
            ValidationError: If amount <= 0, has sub-cent precision, or reason is blank
            InsufficientBalance: If amount exceeds the balance
            NotFound: If the user doesn't exist
        """
        with atomic(self.postgres) as tx:
            wallet, transaction = self.apply_debit(
                tx, user_id, amount, reason, actor_id, reference_type, related_booking_id
            )

        logger.info(f"Wallet {user_id} debited {transaction.amount}, balance {wallet.balance}")
        return transaction

    def refund_to_wallet(self, payment_id: UUID, reason: str, actor_id: UUID) -> RefundResult:
        """
        Refund a paid payment into the paying user's wallet.

        Locks booking, then payment, then wallet. Does not check the booking's
        status; SettlementService.refund_payment adds that rule.

        Raises:
            ValidationError: If reason is blank
            NotFound: If payment doesn't exist
            InvalidTransition: If payment is not paid
        """
        reason = require_reason(reason)

        payment = self.payments.get_by_id(payment_id)
        if payment is None:
            raise NotFound("payment", payment_id)

        with atomic(self.postgres) as tx:
            lock_row(tx, "bookings", "id", payment.booking_id)
            payment = self.payments.lock(tx, payment_id)
            refunded, wallet, transaction = self.apply_refund(tx, payment, reason, actor_id)
            booking = Booking.model_validate(tx.execute_single(
                "SELECT * FROM bookings WHERE id = %s", (payment.booking_id,)
            ))

        logger.info(f"Payment {payment_id} refunded {refunded.refund_amount} to wallet {wallet.user_id}")
        return RefundResult(payment=refunded, booking=booking, wallet=wallet, transaction=transaction)

    # =========================================================================
    # READS
    # =========================================================================

    def get_wallet(self, user_id: UUID) -> WalletAccount | None:
        """
        Get a user's wallet.

        Returns:
            WalletAccount if one has been created, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM wallets WHERE user_id = %s",
            (user_id,)
        )

        if row is None:
            return None

        return WalletAccount.model_validate(row)

    def list_transactions(self, user_id: UUID, limit: int = 50) -> list[WalletTransaction]:
        """List a user's ledger entries, newest first."""
        rows = self.postgres.execute(
            """
            SELECT * FROM wallet_transactions
            WHERE user_id = %s
            ORDER BY created_at DESC, id
            LIMIT %s
            """,
            (user_id, limit)
        )
        return [WalletTransaction.model_validate(row) for row in rows]

    def get_summary(self, user_id: UUID, limit: int = 10) -> WalletSummary:
        """
        Wallet with its most recent transactions.

        A user without a wallet yet gets an empty, unsaved one.
        """
        wallet = self.get_wallet(user_id)
        if wallet is None:
            now = now_utc()
            wallet = WalletAccount(
                user_id=user_id, balance=ZERO, total_earned=ZERO, total_spent=ZERO,
                created_at=now, updated_at=now,
            )
            return WalletSummary(wallet=wallet, recent_transactions=[])

        return WalletSummary(wallet=wallet, recent_transactions=self.list_transactions(user_id, limit))

    def reconcile(self, user_id: UUID) -> WalletReconciliation:
        """
        Recompute the ledger sums and compare them with the stored wallet.

        Raises:
            NotFound: If the user has no wallet
        """
        wallet = self.get_wallet(user_id)
        if wallet is None:
            raise NotFound("wallet", user_id)

        sums = self.postgres.execute_single(
            """
            SELECT
                COALESCE(SUM(amount) FILTER (WHERE type = 'credit'), 0) AS credits,
                COALESCE(SUM(amount) FILTER (WHERE type = 'debit'), 0) AS debits
            FROM wallet_transactions
            WHERE user_id = %s
            """,
            (user_id,)
        )

        report = WalletReconciliation(
            user_id=user_id,
            balance=wallet.balance,
            total_earned=wallet.total_earned,
            total_spent=wallet.total_spent,
            ledger_credits=sums["credits"],
            ledger_debits=sums["debits"],
        )

        if not report.is_consistent:
            logger.error(
                f"Wallet {user_id} out of balance: stored {wallet.balance}, "
                f"ledger {report.ledger_balance}"
            )

        return report
