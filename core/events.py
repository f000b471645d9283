"""
Domain events for booking settlement.

Immutable event objects that represent committed state changes. The
settlement coordinator publishes them after its transaction commits;
handlers react (notifications) without the coordinator knowing who listens.

Event Categories:
- BookingEvent: Booking lifecycle (status change, cancellation, assignment)
- QuotationEvent: Quotation lifecycle (created, decided)
- PaymentEvent: Payment lifecycle (refunded)
- WalletEvent: Wallet ledger (credited)

Events carry the committed domain objects so handlers don't need to re-fetch
state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class SettlementEvent:
    """Base class for all settlement domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)
    actor_id: UUID | None = None


# =============================================================================
# BOOKING EVENTS
# =============================================================================


@dataclass(frozen=True)
class BookingEvent(SettlementEvent):
    """Events related to booking lifecycle."""
    pass


@dataclass(frozen=True)
class BookingStatusChanged(BookingEvent):
    """Booking moved from one status to another."""
    booking: Any = None  # Booking
    previous_status: str = ""

    @classmethod
    def create(cls, booking: Any, previous_status: str, actor_id: UUID) -> "BookingStatusChanged":
        return cls(booking=booking, previous_status=previous_status, actor_id=actor_id)


@dataclass(frozen=True)
class BookingCancelled(BookingEvent):
    """Booking was cancelled by an admin."""
    booking: Any = None
    previous_status: str = ""
    previous_technician_id: UUID | None = None

    @classmethod
    def create(
        cls,
        booking: Any,
        previous_status: str,
        previous_technician_id: UUID | None,
        actor_id: UUID
    ) -> "BookingCancelled":
        return cls(
            booking=booking,
            previous_status=previous_status,
            previous_technician_id=previous_technician_id,
            actor_id=actor_id,
        )


@dataclass(frozen=True)
class TechnicianAssigned(BookingEvent):
    """A technician was assigned (or reassigned) to a booking."""
    booking: Any = None

    @classmethod
    def create(cls, booking: Any, actor_id: UUID) -> "TechnicianAssigned":
        return cls(booking=booking, actor_id=actor_id)


# =============================================================================
# QUOTATION EVENTS
# =============================================================================


@dataclass(frozen=True)
class QuotationEvent(SettlementEvent):
    """Events related to quotation lifecycle."""
    pass


@dataclass(frozen=True)
class QuotationCreated(QuotationEvent):
    """A quotation was raised and the booking is waiting on it."""
    quotation: Any = None  # Quotation
    booking: Any = None

    @classmethod
    def create(cls, quotation: Any, booking: Any, actor_id: UUID) -> "QuotationCreated":
        return cls(quotation=quotation, booking=booking, actor_id=actor_id)


@dataclass(frozen=True)
class QuotationDecided(QuotationEvent):
    """A quotation was approved or rejected."""
    quotation: Any = None
    booking: Any = None

    @classmethod
    def create(cls, quotation: Any, booking: Any, actor_id: UUID) -> "QuotationDecided":
        return cls(quotation=quotation, booking=booking, actor_id=actor_id)


# =============================================================================
# PAYMENT EVENTS
# =============================================================================


@dataclass(frozen=True)
class PaymentEvent(SettlementEvent):
    """Events related to payment lifecycle."""
    pass


@dataclass(frozen=True)
class PaymentRefunded(PaymentEvent):
    """A paid payment was refunded into the payer's wallet."""
    payment: Any = None  # Payment
    booking: Any = None
    wallet: Any = None  # WalletAccount after the credit

    @classmethod
    def create(cls, payment: Any, booking: Any, wallet: Any, actor_id: UUID) -> "PaymentRefunded":
        return cls(payment=payment, booking=booking, wallet=wallet, actor_id=actor_id)


# =============================================================================
# WALLET EVENTS
# =============================================================================


@dataclass(frozen=True)
class WalletEvent(SettlementEvent):
    """Events related to the wallet ledger."""
    pass


@dataclass(frozen=True)
class WalletCredited(WalletEvent):
    """An admin top-up credited a customer's wallet."""
    wallet: Any = None  # WalletAccount
    transaction: Any = None  # WalletTransaction

    @classmethod
    def create(cls, wallet: Any, transaction: Any, actor_id: UUID) -> "WalletCredited":
        return cls(wallet=wallet, transaction=transaction, actor_id=actor_id)
