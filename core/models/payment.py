"""Payment domain models.

Gateway methods are opaque tags; no gateway protocol is modelled here.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentMethod(str, Enum):
    """How a payment was made."""

    WALLET = "wallet"
    MOYASAR = "moyasar"
    TABBY = "tabby"


class PaymentStatus(str, Enum):
    """Payment lifecycle status."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentCreate(BaseModel):
    """Data required to record a payment against a booking."""

    booking_id: UUID
    user_id: UUID
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    gateway_transaction_id: str | None = Field(None, max_length=255)


class Payment(BaseModel):
    """Full payment entity as stored."""

    id: UUID
    booking_id: UUID
    user_id: UUID
    amount: Decimal
    method: PaymentMethod
    status: PaymentStatus
    gateway_transaction_id: str | None
    refund_amount: Decimal = Decimal("0.00")
    refund_reason: str | None = None
    refunded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_refundable(self) -> bool:
        """Only settled payments can be refunded, and only once."""
        return self.status == PaymentStatus.PAID
