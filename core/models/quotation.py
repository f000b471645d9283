"""Quotation (cost addendum) domain models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class QuotationStatus(str, Enum):
    """Quotation decision status. Approved and rejected are final."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class QuotationDecision(str, Enum):
    """Admin decision on a pending quotation."""

    APPROVED = "approved"
    REJECTED = "rejected"


class SparePartLine(BaseModel):
    """One spare part line as submitted. Validated again by the calculator."""

    spare_part_id: UUID
    quantity: int
    unit_price: Decimal


class QuotationTotals(BaseModel):
    """Calculator output."""

    spare_parts_total: Decimal
    vat_amount: Decimal
    total_amount: Decimal

    model_config = {"frozen": True}


class QuotationCreate(BaseModel):
    """Data required to raise a quotation against a booking."""

    booking_id: UUID
    technician_id: UUID
    additional_cost: Decimal = Decimal("0.00")
    spare_parts: list[SparePartLine] = Field(default_factory=list)
    notes: str | None = Field(None, max_length=2000)


class QuotationLineItem(BaseModel):
    """Spare part line as stored."""

    id: UUID
    quotation_id: UUID
    spare_part_id: UUID
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class Quotation(BaseModel):
    """Full quotation entity as stored."""

    id: UUID
    booking_id: UUID
    technician_id: UUID
    status: QuotationStatus
    additional_cost: Decimal
    spare_parts_total: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    total_amount: Decimal
    notes: str | None
    expires_at: datetime
    decided_at: datetime | None = None
    decided_by: UUID | None = None
    created_at: datetime
    line_items: list[QuotationLineItem] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @property
    def subtotal(self) -> Decimal:
        return self.additional_cost + self.spare_parts_total

    @property
    def is_pending(self) -> bool:
        return self.status == QuotationStatus.PENDING
