"""Test users and data builders shared by the database-backed tests."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from core.models import (
    Booking, BookingCreate, BookingStatus, Payment, PaymentCreate, PaymentMethod,
    PaymentStatus, Quotation, QuotationStatus, WalletAccount, WalletTransaction,
)
from utils.timezone import now_utc


# =============================================================================
# TEST USER CONSTANTS
# =============================================================================

ADMIN_ID = UUID("00000000-0000-0000-0000-000000000001")
CUSTOMER_ID = UUID("00000000-0000-0000-0000-000000000002")
TECHNICIAN_ID = UUID("00000000-0000-0000-0000-000000000003")
OTHER_TECHNICIAN_ID = UUID("00000000-0000-0000-0000-000000000004")
INACTIVE_TECHNICIAN_ID = UUID("00000000-0000-0000-0000-000000000005")
SECOND_CUSTOMER_ID = UUID("00000000-0000-0000-0000-000000000006")

TEST_USERS = [
    (ADMIN_ID, "admin", "active"),
    (CUSTOMER_ID, "customer", "active"),
    (TECHNICIAN_ID, "technician", "active"),
    (OTHER_TECHNICIAN_ID, "technician", "active"),
    (INACTIVE_TECHNICIAN_ID, "technician", "inactive"),
    (SECOND_CUSTOMER_ID, "customer", "active"),
]


# =============================================================================
# PERSISTED DATA (real services)
# =============================================================================


def create_booking(services, total_amount: str = "100.00", customer_id: UUID = CUSTOMER_ID) -> Booking:
    """Create a pending booking through BookingService."""
    return services["booking"].create(
        BookingCreate(
            customer_id=customer_id,
            service_id=uuid4(),
            scheduled_date=date(2026, 11, 2),
            scheduled_time="10:30",
            total_amount=Decimal(total_amount),
        ),
        ADMIN_ID,
    )


def advance_booking(services, booking_id: UUID, *statuses: BookingStatus) -> Booking:
    """Walk a booking through status changes; TECHNICIAN_ASSIGNED assigns TECHNICIAN_ID."""
    settlement = services["settlement"]
    booking = None
    for status in statuses:
        if status == BookingStatus.TECHNICIAN_ASSIGNED:
            booking = settlement.assign_technician(booking_id, TECHNICIAN_ID, ADMIN_ID)
        else:
            booking = settlement.change_status(booking_id, status, ADMIN_ID)
    return booking


def booking_in_progress(services, total_amount: str = "100.00") -> Booking:
    booking = create_booking(services, total_amount)
    return advance_booking(
        services, booking.id,
        BookingStatus.CONFIRMED, BookingStatus.TECHNICIAN_ASSIGNED, BookingStatus.IN_PROGRESS,
    )


def create_paid_payment(
    services,
    booking_id: UUID,
    amount: str = "100.00",
    user_id: UUID = CUSTOMER_ID
) -> Payment:
    """Record a paid gateway payment against a booking."""
    return services["payment"].create(
        PaymentCreate(
            booking_id=booking_id,
            user_id=user_id,
            amount=Decimal(amount),
            method=PaymentMethod.MOYASAR,
            status=PaymentStatus.PAID,
            gateway_transaction_id=f"pay_{uuid4().hex[:12]}",
        ),
        ADMIN_ID,
    )


# =============================================================================
# IN-MEMORY MODELS
# =============================================================================


def booking_model(**overrides) -> Booking:
    now = now_utc()
    fields = dict(
        id=uuid4(),
        customer_id=CUSTOMER_ID,
        service_id=uuid4(),
        technician_id=None,
        scheduled_date=date(2026, 11, 2),
        scheduled_time="10:30",
        status=BookingStatus.PENDING,
        total_amount=Decimal("100.00"),
        payment_id=None,
        payment_status=PaymentStatus.PENDING,
        notes=None,
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Booking(**fields)


def quotation_model(booking_id: UUID | None = None, **overrides) -> Quotation:
    now = now_utc()
    fields = dict(
        id=uuid4(),
        booking_id=booking_id or uuid4(),
        technician_id=TECHNICIAN_ID,
        status=QuotationStatus.PENDING,
        additional_cost=Decimal("50.00"),
        spare_parts_total=Decimal("100.00"),
        vat_rate=Decimal("0.15"),
        vat_amount=Decimal("22.50"),
        total_amount=Decimal("172.50"),
        notes=None,
        expires_at=now,
        created_at=now,
    )
    fields.update(overrides)
    return Quotation(**fields)


def payment_model(booking_id: UUID | None = None, **overrides) -> Payment:
    now = now_utc()
    fields = dict(
        id=uuid4(),
        booking_id=booking_id or uuid4(),
        user_id=CUSTOMER_ID,
        amount=Decimal("100.00"),
        method=PaymentMethod.MOYASAR,
        status=PaymentStatus.PAID,
        gateway_transaction_id="pay_test",
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Payment(**fields)


def wallet_model(balance: str = "0.00", earned: str | None = None, spent: str = "0.00", **overrides) -> WalletAccount:
    now = now_utc()
    fields = dict(
        user_id=CUSTOMER_ID,
        balance=Decimal(balance),
        total_earned=Decimal(earned if earned is not None else balance),
        total_spent=Decimal(spent),
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return WalletAccount(**fields)


def wallet_transaction_model(amount: str = "100.00", **overrides) -> WalletTransaction:
    fields = dict(
        id=uuid4(),
        user_id=CUSTOMER_ID,
        type="credit",
        amount=Decimal(amount),
        balance_before=Decimal("0.00"),
        balance_after=Decimal(amount),
        reason="Goodwill credit",
        reference_type="topup",
        related_booking_id=None,
        created_at=datetime(2026, 10, 1, 12, 0, tzinfo=now_utc().tzinfo),
    )
    fields.update(overrides)
    return WalletTransaction(**fields)
