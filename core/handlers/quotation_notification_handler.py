"""
Handlers for quotation events.

A new quotation needs the customer's attention; a decision goes back to the
technician who raised it.
"""

import logging
from typing import Callable

from clients.notification_client import NotificationType
from core.events import QuotationCreated, QuotationDecided

logger = logging.getLogger(__name__)


def handle_quotation_created(notifier) -> Callable:
    """
    Factory that returns a QuotationCreated handler.

    Args:
        notifier: NotificationGatewayClient instance

    Returns:
        Handler callable that asks the customer to review the quotation
    """

    def handler(event: QuotationCreated):
        quotation = event.quotation

        notifier.send(
            event.booking.customer_id,
            NotificationType.QUOTATION_REQUEST,
            title="Quotation awaiting approval",
            body=f"Additional work has been quoted at {quotation.total_amount} SAR (incl. VAT).",
            title_ar="عرض سعر بانتظار الموافقة",
            body_ar=f"تم تقديم عرض سعر لأعمال إضافية بقيمة {quotation.total_amount} ريال (شامل الضريبة).",
            data={
                "booking_id": str(quotation.booking_id),
                "quotation_id": str(quotation.id),
                "total_amount": str(quotation.total_amount),
            },
        )

    return handler


def handle_quotation_decided(notifier) -> Callable:
    """Factory that returns a QuotationDecided handler notifying the technician."""

    def handler(event: QuotationDecided):
        quotation = event.quotation
        approved = quotation.status.value == "approved"

        notifier.send(
            quotation.technician_id,
            NotificationType.QUOTATION_REQUEST,
            title="Quotation approved" if approved else "Quotation rejected",
            body=f"Your quotation for {quotation.total_amount} SAR was {quotation.status.value}.",
            title_ar="تمت الموافقة على عرض السعر" if approved else "تم رفض عرض السعر",
            body_ar=(
                f"تمت الموافقة على عرض السعر بقيمة {quotation.total_amount} ريال."
                if approved else
                f"تم رفض عرض السعر بقيمة {quotation.total_amount} ريال."
            ),
            data={
                "booking_id": str(quotation.booking_id),
                "quotation_id": str(quotation.id),
                "status": quotation.status.value,
            },
        )

    return handler
