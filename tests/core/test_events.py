"""Tests for domain event models."""

from dataclasses import FrozenInstanceError
from datetime import timezone

import pytest

from core.events import (
    SettlementEvent,
    BookingEvent, BookingStatusChanged, BookingCancelled, TechnicianAssigned,
    QuotationEvent, QuotationCreated, QuotationDecided,
    PaymentEvent, PaymentRefunded,
    WalletEvent, WalletCredited,
)
from core.models import BookingStatus
from factories import (
    ADMIN_ID, TECHNICIAN_ID, booking_model, payment_model, quotation_model,
    wallet_model, wallet_transaction_model,
)


@pytest.fixture
def _booking():
    return booking_model(status=BookingStatus.CANCELLED)


class TestEventBase:

    def test_event_id_and_timestamp_generated(self, _booking):
        event = BookingStatusChanged.create(_booking, "pending", ADMIN_ID)

        assert len(event.event_id) == 36
        assert event.occurred_at.tzinfo == timezone.utc
        assert event.actor_id == ADMIN_ID

    def test_each_event_gets_unique_id(self, _booking):
        first = BookingStatusChanged.create(_booking, "pending", ADMIN_ID)
        second = BookingStatusChanged.create(_booking, "pending", ADMIN_ID)

        assert first.event_id != second.event_id

    def test_events_are_immutable(self, _booking):
        event = BookingStatusChanged.create(_booking, "pending", ADMIN_ID)

        with pytest.raises(FrozenInstanceError):
            event.previous_status = "confirmed"


class TestEventCategories:

    def test_hierarchy(self, _booking):
        quotation = quotation_model(_booking.id)

        assert isinstance(BookingCancelled.create(_booking, "confirmed", None, ADMIN_ID), BookingEvent)
        assert isinstance(TechnicianAssigned.create(_booking, ADMIN_ID), BookingEvent)
        assert isinstance(QuotationCreated.create(quotation, _booking, ADMIN_ID), QuotationEvent)
        assert isinstance(QuotationDecided.create(quotation, _booking, ADMIN_ID), QuotationEvent)
        assert isinstance(
            PaymentRefunded.create(payment_model(_booking.id), _booking, wallet_model(), ADMIN_ID),
            PaymentEvent,
        )
        assert isinstance(
            WalletCredited.create(wallet_model(), wallet_transaction_model(), ADMIN_ID),
            WalletEvent,
        )

    def test_all_events_share_base(self, _booking):
        assert isinstance(TechnicianAssigned.create(_booking, ADMIN_ID), SettlementEvent)


class TestEventPayloads:

    def test_cancelled_carries_previous_state(self, _booking):
        event = BookingCancelled.create(_booking, "in_progress", TECHNICIAN_ID, ADMIN_ID)

        assert event.booking is _booking
        assert event.previous_status == "in_progress"
        assert event.previous_technician_id == TECHNICIAN_ID

    def test_refunded_carries_wallet_after_credit(self, _booking):
        wallet = wallet_model("100.00")
        payment = payment_model(_booking.id)

        event = PaymentRefunded.create(payment, _booking, wallet, ADMIN_ID)

        assert event.payment is payment
        assert event.wallet.balance == wallet.balance
