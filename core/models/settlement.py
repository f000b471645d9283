"""Aggregates returned by settlement operations."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from core.models.booking import Booking
from core.models.payment import Payment
from core.models.quotation import Quotation
from core.models.wallet import WalletAccount, WalletTransaction


class BookingDetail(BaseModel):
    """Booking with everything settled against it."""

    booking: Booking
    quotations: list[Quotation]
    payments: list[Payment]


class QuotationDecisionResult(BaseModel):
    """Decided quotation and the booking as it stands afterwards."""

    quotation: Quotation
    booking: Booking


class RefundResult(BaseModel):
    """Refunded payment, its booking and the credited wallet."""

    payment: Payment
    booking: Booking
    wallet: WalletAccount
    transaction: WalletTransaction


class TopUpResult(BaseModel):
    """Credited wallet and the ledger entry that did it."""

    wallet: WalletAccount
    transaction: WalletTransaction


class WalletReconciliation(BaseModel):
    """Stored wallet totals checked against its ledger."""

    user_id: UUID
    balance: Decimal
    total_earned: Decimal
    total_spent: Decimal
    ledger_credits: Decimal
    ledger_debits: Decimal

    @property
    def ledger_balance(self) -> Decimal:
        return self.ledger_credits - self.ledger_debits

    @property
    def is_consistent(self) -> bool:
        """Both wallet invariants hold and the ledger agrees with the aggregates."""
        return (
            self.balance == self.total_earned - self.total_spent
            and self.balance == self.ledger_balance
            and self.total_earned == self.ledger_credits
            and self.total_spent == self.ledger_debits
        )
