"""Wallet ledger domain models.

A wallet never changes except by applying a transaction. with_credit() and
with_debit() return the next wallet state; WalletService persists it together
with the transaction row.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel

from core.exceptions import InsufficientBalance
from core.money import require_positive_amount


class TransactionType(str, Enum):
    """Direction of a ledger entry."""

    CREDIT = "credit"
    DEBIT = "debit"


class ReferenceType(str, Enum):
    """Business event that produced a ledger entry."""

    TOPUP = "topup"
    REFUND = "refund"
    PURCHASE = "purchase"
    ADJUSTMENT = "adjustment"


class WalletAccount(BaseModel):
    """Per-user running balance and lifetime aggregates."""

    user_id: UUID
    balance: Decimal
    total_earned: Decimal
    total_spent: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_reconciled(self) -> bool:
        """balance == total_earned - total_spent."""
        return self.balance == self.total_earned - self.total_spent

    def with_credit(self, amount: Decimal) -> "WalletAccount":
        """Wallet state after crediting amount."""
        amount = require_positive_amount(amount)
        return self.model_copy(update={
            "balance": self.balance + amount,
            "total_earned": self.total_earned + amount,
        })

    def with_debit(self, amount: Decimal) -> "WalletAccount":
        """
        Wallet state after debiting amount.

        Raises:
            InsufficientBalance: If amount exceeds the current balance
        """
        amount = require_positive_amount(amount)
        if amount > self.balance:
            raise InsufficientBalance(self.balance, amount)
        return self.model_copy(update={
            "balance": self.balance - amount,
            "total_spent": self.total_spent + amount,
        })


class WalletTransaction(BaseModel):
    """Append-only ledger entry."""

    id: UUID
    user_id: UUID
    type: TransactionType
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    reason: str
    reference_type: ReferenceType
    related_booking_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @property
    def signed_amount(self) -> Decimal:
        """Positive for credits, negative for debits."""
        return self.amount if self.type == TransactionType.CREDIT else -self.amount


class WalletSummary(BaseModel):
    """Wallet with its most recent ledger entries."""

    wallet: WalletAccount
    recent_transactions: list[WalletTransaction]
