"""Booking lifecycle and refund endpoints."""

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from api.middleware import get_actor_id
from core.models import BookingStatus


class StatusUpdateRequest(BaseModel):
    status: BookingStatus
    reason: str | None = None


class AssignTechnicianRequest(BaseModel):
    technician_id: UUID


class CancelRequest(BaseModel):
    reason: str | None = None


class RefundRequest(BaseModel):
    payment_id: UUID
    reason: str | None = None


def create_bookings_router(services: dict) -> APIRouter:
    router = APIRouter()

    settlement_svc = services["settlement"]

    @router.get("/bookings/{booking_id}")
    def get_booking(request: Request, booking_id: UUID):
        detail = settlement_svc.get_booking_detail(booking_id)
        return success_response(
            detail.model_dump(mode="json"),
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.put("/bookings/{booking_id}/status")
    def update_status(request: Request, booking_id: UUID, body: StatusUpdateRequest):
        booking = settlement_svc.change_status(
            booking_id, body.status, get_actor_id(request), reason=body.reason
        )
        return success_response(
            booking.model_dump(mode="json"),
            message=f"Booking status updated to {booking.status.value}",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.put("/bookings/{booking_id}/assign-technician")
    def assign_technician(request: Request, booking_id: UUID, body: AssignTechnicianRequest):
        booking = settlement_svc.assign_technician(
            booking_id, body.technician_id, get_actor_id(request)
        )
        return success_response(
            booking.model_dump(mode="json"),
            message="Technician assigned",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.patch("/bookings/{booking_id}/cancel")
    def cancel_booking(request: Request, booking_id: UUID, body: CancelRequest):
        booking = settlement_svc.cancel_booking(booking_id, body.reason, get_actor_id(request))
        return success_response(
            booking.model_dump(mode="json"),
            message="Booking cancelled",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.post("/bookings/{booking_id}/refund")
    def refund_payment(request: Request, booking_id: UUID, body: RefundRequest):
        result = settlement_svc.refund_payment(
            booking_id, body.payment_id, body.reason, get_actor_id(request)
        )
        return success_response(
            result.model_dump(mode="json"),
            message=f"Refunded {result.payment.refund_amount} to wallet",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    return router
