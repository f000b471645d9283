"""
Handlers for money movements.

Customers are told when a refund or a top-up lands in their wallet.
"""

import logging
from typing import Callable

from clients.notification_client import NotificationType
from core.events import PaymentRefunded, WalletCredited

logger = logging.getLogger(__name__)


def handle_payment_refunded(notifier) -> Callable:
    """
    Factory that returns a PaymentRefunded handler.

    Args:
        notifier: NotificationGatewayClient instance
    """

    def handler(event: PaymentRefunded):
        payment = event.payment

        notifier.send(
            payment.user_id,
            NotificationType.PAYMENT_CONFIRMATION,
            title="Refund issued",
            body=f"{payment.refund_amount} SAR has been refunded to your wallet.",
            title_ar="تم استرداد المبلغ",
            body_ar=f"تم استرداد {payment.refund_amount} ريال إلى محفظتك.",
            data={
                "booking_id": str(payment.booking_id),
                "payment_id": str(payment.id),
                "wallet_balance": str(event.wallet.balance),
            },
        )

    return handler


def handle_wallet_credited(notifier) -> Callable:
    """Factory that returns a WalletCredited handler."""

    def handler(event: WalletCredited):
        transaction = event.transaction

        notifier.send(
            transaction.user_id,
            NotificationType.PAYMENT_CONFIRMATION,
            title="Wallet topped up",
            body=f"{transaction.amount} SAR has been added to your wallet.",
            title_ar="تم شحن المحفظة",
            body_ar=f"تمت إضافة {transaction.amount} ريال إلى محفظتك.",
            data={
                "transaction_id": str(transaction.id),
                "wallet_balance": str(event.wallet.balance),
            },
        )

    return handler
