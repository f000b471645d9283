"""
Handlers for booking lifecycle events.

Tell customers and technicians about assignment, progress and cancellation
through the notification gateway.
"""

import logging
from typing import Callable

from clients.notification_client import NotificationType
from core.events import BookingCancelled, BookingStatusChanged, TechnicianAssigned
from core.models import BookingStatus

logger = logging.getLogger(__name__)

# Status changes the customer hears about; assignment and cancellation have their own handlers
_CUSTOMER_UPDATES = {
    BookingStatus.CONFIRMED: (
        "Booking confirmed", "Your booking has been confirmed.",
        "تم تأكيد الحجز", "تم تأكيد حجزك.",
    ),
    BookingStatus.EN_ROUTE: (
        "Technician on the way", "Your technician is on the way.",
        "الفني في الطريق", "الفني في الطريق إليك.",
    ),
    BookingStatus.IN_PROGRESS: (
        "Work started", "Work on your booking has started.",
        "بدأ العمل", "بدأ العمل على حجزك.",
    ),
    BookingStatus.COMPLETED: (
        "Booking completed", "Your booking is complete. Thank you!",
        "اكتمل الحجز", "اكتمل حجزك. شكراً لك!",
    ),
}


def handle_technician_assigned(notifier) -> Callable:
    """
    Factory that returns a TechnicianAssigned handler.

    Args:
        notifier: NotificationGatewayClient instance

    Returns:
        Handler callable that notifies the technician and the customer
    """

    def handler(event: TechnicianAssigned):
        booking = event.booking
        data = {"booking_id": str(booking.id)}

        notifier.send(
            booking.technician_id,
            NotificationType.TECHNICIAN_ASSIGNED,
            title="New booking assigned",
            body=f"You have been assigned a booking on {booking.scheduled_date} at {booking.scheduled_time}.",
            title_ar="تم تعيين حجز جديد",
            body_ar=f"تم تعيينك لحجز بتاريخ {booking.scheduled_date} الساعة {booking.scheduled_time}.",
            data=data,
        )

        notifier.send(
            booking.customer_id,
            NotificationType.TECHNICIAN_ASSIGNED,
            title="Technician assigned",
            body="A technician has been assigned to your booking.",
            title_ar="تم تعيين فني",
            body_ar="تم تعيين فني لحجزك.",
            data=data,
        )

    return handler


def handle_booking_status_changed(notifier) -> Callable:
    """
    Factory that returns a BookingStatusChanged handler.

    Only statuses in _CUSTOMER_UPDATES produce a notification.
    """

    def handler(event: BookingStatusChanged):
        booking = event.booking
        message = _CUSTOMER_UPDATES.get(booking.status)
        if message is None:
            return
        # Resuming after a quotation decision is covered by the quotation notification
        if event.previous_status == BookingStatus.QUOTATION_PENDING.value:
            return

        title, body, title_ar, body_ar = message
        notifier.send(
            booking.customer_id,
            NotificationType.ORDER_UPDATE,
            title=title,
            body=body,
            title_ar=title_ar,
            body_ar=body_ar,
            data={"booking_id": str(booking.id), "status": booking.status.value},
        )

    return handler


def handle_booking_cancelled(notifier) -> Callable:
    """
    Factory that returns a BookingCancelled handler.

    Notifies the customer, and the technician who lost the job if there was one.
    """

    def handler(event: BookingCancelled):
        booking = event.booking
        data = {"booking_id": str(booking.id), "status": booking.status.value}

        notifier.send(
            booking.customer_id,
            NotificationType.ORDER_UPDATE,
            title="Booking cancelled",
            body=f"Your booking has been cancelled: {booking.cancellation_reason}",
            title_ar="تم إلغاء الحجز",
            body_ar=f"تم إلغاء حجزك: {booking.cancellation_reason}",
            data=data,
        )

        if event.previous_technician_id is not None:
            notifier.send(
                event.previous_technician_id,
                NotificationType.ORDER_UPDATE,
                title="Booking cancelled",
                body="A booking assigned to you has been cancelled.",
                title_ar="تم إلغاء الحجز",
                body_ar="تم إلغاء حجز كان مسنداً إليك.",
                data=data,
            )

    return handler
