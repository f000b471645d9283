"""Tests for booking lifecycle and refund endpoints."""

from decimal import Decimal
from uuid import uuid4

from core.exceptions import ConflictError, InvalidAssignment, InvalidTransition, NotFound, ValidationError
from core.models import BookingDetail, BookingStatus, PaymentStatus, RefundResult
from factories import (
    ADMIN_ID, TECHNICIAN_ID, booking_model, payment_model, wallet_model, wallet_transaction_model,
)


class TestGetBooking:

    def test_returns_detail(self, client, settlement_service):
        booking = booking_model()
        settlement_service.get_booking_detail.return_value = BookingDetail(
            booking=booking, quotations=[], payments=[payment_model(booking.id)]
        )

        response = client.get(f"/bookings/{booking.id}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["booking"]["id"] == str(booking.id)
        assert data["booking"]["total_amount"] == "100.00"
        assert len(data["payments"]) == 1

    def test_missing_booking_404(self, client, settlement_service):
        booking_id = uuid4()
        settlement_service.get_booking_detail.side_effect = NotFound("booking", booking_id)

        response = client.get(f"/bookings/{booking_id}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_malformed_id_422(self, client):
        response = client.get("/bookings/not-a-uuid")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestUpdateStatus:

    def test_status_updated(self, client, settlement_service):
        booking = booking_model(status=BookingStatus.CONFIRMED)
        settlement_service.change_status.return_value = booking

        response = client.put(f"/bookings/{booking.id}/status", json={"status": "confirmed"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Booking status updated to confirmed"
        assert body["data"]["status"] == "confirmed"
        settlement_service.change_status.assert_called_once_with(
            booking.id, BookingStatus.CONFIRMED, ADMIN_ID, reason=None
        )

    def test_invalid_transition_400(self, client, settlement_service):
        settlement_service.change_status.side_effect = InvalidTransition("completed", "in_progress", "terminal")

        response = client.put(f"/bookings/{uuid4()}/status", json={"status": "in_progress"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "INVALID_TRANSITION"
        assert "'completed'" in body["message"]
        assert "'in_progress'" in body["message"]

    def test_unknown_status_422(self, client, settlement_service):
        response = client.put(f"/bookings/{uuid4()}/status", json={"status": "archived"})

        assert response.status_code == 422
        settlement_service.change_status.assert_not_called()

    def test_conflict_409(self, client, settlement_service):
        settlement_service.change_status.side_effect = ConflictError("Resource is being modified")

        response = client.put(f"/bookings/{uuid4()}/status", json={"status": "confirmed"})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"


class TestAssignTechnician:

    def test_assigned(self, client, settlement_service):
        booking = booking_model(status=BookingStatus.TECHNICIAN_ASSIGNED, technician_id=TECHNICIAN_ID)
        settlement_service.assign_technician.return_value = booking

        response = client.put(
            f"/bookings/{booking.id}/assign-technician", json={"technician_id": str(TECHNICIAN_ID)}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Technician assigned"
        settlement_service.assign_technician.assert_called_once_with(booking.id, TECHNICIAN_ID, ADMIN_ID)

    def test_unknown_technician_404(self, client, settlement_service):
        settlement_service.assign_technician.side_effect = InvalidAssignment("Technician x not found")

        response = client.put(
            f"/bookings/{uuid4()}/assign-technician", json={"technician_id": str(uuid4())}
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVALID_ASSIGNMENT"


class TestCancelBooking:

    def test_cancelled(self, client, settlement_service):
        booking = booking_model(status=BookingStatus.CANCELLED, cancellation_reason="customer unreachable")
        settlement_service.cancel_booking.return_value = booking

        response = client.patch(f"/bookings/{booking.id}/cancel", json={"reason": "customer unreachable"})

        assert response.status_code == 200
        assert response.json()["data"]["cancellation_reason"] == "customer unreachable"
        settlement_service.cancel_booking.assert_called_once_with(booking.id, "customer unreachable", ADMIN_ID)

    def test_blank_reason_400(self, client, settlement_service):
        settlement_service.cancel_booking.side_effect = ValidationError("reason is required")

        response = client.patch(f"/bookings/{uuid4()}/cancel", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "reason is required"


class TestRefund:

    def test_refunded(self, client, settlement_service):
        booking = booking_model(status=BookingStatus.COMPLETED, payment_status=PaymentStatus.REFUNDED)
        payment = payment_model(booking.id, status=PaymentStatus.REFUNDED, amount=Decimal("200.00"),
                                refund_amount=Decimal("200.00"))
        settlement_service.refund_payment.return_value = RefundResult(
            payment=payment,
            booking=booking,
            wallet=wallet_model("200.00"),
            transaction=wallet_transaction_model("200.00", reference_type="refund"),
        )

        response = client.post(
            f"/bookings/{booking.id}/refund",
            json={"payment_id": str(payment.id), "reason": "service not delivered"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Refunded 200.00 to wallet"
        assert body["data"]["wallet"]["balance"] == "200.00"
        assert body["data"]["transaction"]["reference_type"] == "refund"
        settlement_service.refund_payment.assert_called_once_with(
            booking.id, payment.id, "service not delivered", ADMIN_ID
        )

    def test_already_refunded_400(self, client, settlement_service):
        settlement_service.refund_payment.side_effect = InvalidTransition("refunded", "refunded")

        response = client.post(f"/bookings/{uuid4()}/refund", json={"payment_id": str(uuid4()), "reason": "x"})

        assert response.status_code == 400

    def test_payment_id_required(self, client, settlement_service):
        response = client.post(f"/bookings/{uuid4()}/refund", json={"reason": "x"})

        assert response.status_code == 422
        assert "payment_id" in response.json()["message"]
        settlement_service.refund_payment.assert_not_called()


class TestAuthentication:

    def test_anonymous_rejected_before_service_call(self, anonymous_client, settlement_service):
        response = anonymous_client.put(f"/bookings/{uuid4()}/status", json={"status": "confirmed"})

        assert response.status_code == 401
        settlement_service.change_status.assert_not_called()
