"""Booking (scheduled service job) domain models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import NamedTuple
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.payment import PaymentStatus


class BookingStatus(str, Enum):
    """Booking lifecycle status. Transitions live in core.state_machine."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    TECHNICIAN_ASSIGNED = "technician_assigned"
    EN_ROUTE = "en_route"
    IN_PROGRESS = "in_progress"
    QUOTATION_PENDING = "quotation_pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (BookingStatus.COMPLETED, BookingStatus.CANCELLED)

    @property
    def display(self) -> "StatusDisplay":
        return STATUS_DISPLAY[self]


class StatusDisplay(NamedTuple):
    """Presentation metadata for a booking status badge."""

    label: str
    label_ar: str
    color: str


STATUS_DISPLAY: dict[BookingStatus, StatusDisplay] = {
    BookingStatus.PENDING: StatusDisplay("Pending", "قيد الانتظار", "yellow"),
    BookingStatus.CONFIRMED: StatusDisplay("Confirmed", "مؤكد", "blue"),
    BookingStatus.TECHNICIAN_ASSIGNED: StatusDisplay("Assigned", "تم التعيين", "purple"),
    BookingStatus.EN_ROUTE: StatusDisplay("En Route", "في الطريق", "indigo"),
    BookingStatus.IN_PROGRESS: StatusDisplay("In Progress", "قيد التنفيذ", "orange"),
    BookingStatus.QUOTATION_PENDING: StatusDisplay("Quotation", "عرض سعر", "amber"),
    BookingStatus.COMPLETED: StatusDisplay("Completed", "مكتمل", "green"),
    BookingStatus.CANCELLED: StatusDisplay("Cancelled", "ملغي", "red"),
}


class BookingCreate(BaseModel):
    """Data required to submit a booking."""

    customer_id: UUID
    service_id: UUID
    scheduled_date: date
    scheduled_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    total_amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    notes: str | None = Field(None, max_length=2000)


class Booking(BaseModel):
    """Full booking entity as stored."""

    id: UUID
    customer_id: UUID
    service_id: UUID
    technician_id: UUID | None
    scheduled_date: date
    scheduled_time: str
    status: BookingStatus
    total_amount: Decimal
    payment_id: UUID | None
    payment_status: PaymentStatus
    notes: str | None
    assigned_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancelled_by: UUID | None = None
    cancellation_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_terminal(self) -> bool:
        """Whether the booking can no longer change status."""
        return self.status.is_terminal
