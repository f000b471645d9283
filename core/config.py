"""Settlement configuration."""

from decimal import Decimal

from pydantic import BaseModel, Field


class SettlementConfig(BaseModel):
    """
    Business policy for bookings, quotations and wallets.

    Rates are fractions (0.15 = 15%). Durations are in hours.
    """

    vat_rate: Decimal = Field(
        default=Decimal("0.15"),
        description="VAT applied to quotation subtotals",
        ge=0,
        le=1,
    )

    quotation_expiry_hours: int = Field(
        default=168,  # 7 days
        description="How long a quotation can wait for a decision",
        ge=1,
    )
    max_quotation_line_items: int = Field(
        default=20,
        description="Maximum spare part lines on a single quotation",
        ge=1,
    )
    approval_completes_booking: bool = Field(
        default=False,
        description=(
            "Whether approving a quotation moves the booking straight to "
            "completed instead of resuming work. Overridable per request."
        ),
    )

    refundable_booking_statuses: frozenset[str] = Field(
        default=frozenset({"completed", "confirmed"}),
        description="Booking statuses on which a payment refund is allowed",
    )

    admin_roles: frozenset[str] = Field(
        default=frozenset({"admin"}),
        description="Gateway roles allowed to call the admin API",
    )
