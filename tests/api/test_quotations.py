"""Tests for quotation endpoints."""

from uuid import uuid4

from core.exceptions import InvalidTransition, NotFound, ValidationError
from core.models import BookingStatus, QuotationCreate, QuotationDecision, QuotationDecisionResult, QuotationStatus
from factories import ADMIN_ID, TECHNICIAN_ID, booking_model, quotation_model


class TestCreateQuotation:

    def test_created_with_totals(self, client, settlement_service):
        booking_id = uuid4()
        settlement_service.create_quotation.return_value = quotation_model(booking_id)

        response = client.post("/quotations", json={
            "booking_id": str(booking_id),
            "technician_id": str(TECHNICIAN_ID),
            "additional_cost": "100.00",
            "spare_parts": [{"spare_part_id": str(uuid4()), "quantity": 2, "unit_price": "25.00"}],
        })

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Quotation created"
        assert body["data"]["vat_amount"] == "22.50"
        assert body["data"]["total_amount"] == "172.50"

        data, actor_id = settlement_service.create_quotation.call_args[0]
        assert isinstance(data, QuotationCreate)
        assert data.spare_parts[0].quantity == 2
        assert actor_id == ADMIN_ID

    def test_calculator_rejection_400(self, client, settlement_service):
        settlement_service.create_quotation.side_effect = ValidationError("quantity must be a positive integer")

        response = client.post("/quotations", json={
            "booking_id": str(uuid4()),
            "technician_id": str(TECHNICIAN_ID),
            "spare_parts": [{"spare_part_id": str(uuid4()), "quantity": 0, "unit_price": "1"}],
        })

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_malformed_line_item_422(self, client, settlement_service):
        response = client.post("/quotations", json={
            "booking_id": str(uuid4()),
            "technician_id": str(TECHNICIAN_ID),
            "spare_parts": [{"quantity": 1}],
        })

        assert response.status_code == 422
        settlement_service.create_quotation.assert_not_called()


class TestGetQuotation:

    def test_found(self, client, settlement_service):
        quotation = quotation_model()
        settlement_service.get_quotation.return_value = quotation

        response = client.get(f"/quotations/{quotation.id}")

        assert response.status_code == 200
        assert response.json()["data"]["id"] == str(quotation.id)

    def test_missing_404(self, client, settlement_service):
        settlement_service.get_quotation.side_effect = NotFound("quotation", "q-1")

        assert client.get(f"/quotations/{uuid4()}").status_code == 404


class TestDecideQuotation:

    def test_approved(self, client, settlement_service):
        booking = booking_model(status=BookingStatus.IN_PROGRESS)
        quotation = quotation_model(booking.id, status=QuotationStatus.APPROVED)
        settlement_service.approve_or_reject_quotation.return_value = QuotationDecisionResult(
            quotation=quotation, booking=booking
        )

        response = client.put(f"/quotations/{quotation.id}", json={"status": "approved"})

        assert response.status_code == 200
        assert response.json()["message"] == "Quotation approved"
        assert response.json()["data"]["booking"]["status"] == "in_progress"
        settlement_service.approve_or_reject_quotation.assert_called_once_with(
            quotation.id, QuotationDecision.APPROVED, ADMIN_ID, complete_booking=None
        )

    def test_complete_booking_flag_passed(self, client, settlement_service):
        booking = booking_model(status=BookingStatus.COMPLETED)
        quotation = quotation_model(booking.id, status=QuotationStatus.APPROVED)
        settlement_service.approve_or_reject_quotation.return_value = QuotationDecisionResult(
            quotation=quotation, booking=booking
        )

        client.put(f"/quotations/{quotation.id}", json={"status": "approved", "complete_booking": True})

        assert settlement_service.approve_or_reject_quotation.call_args.kwargs["complete_booking"] is True

    def test_pending_is_not_a_decision(self, client, settlement_service):
        response = client.put(f"/quotations/{uuid4()}", json={"status": "pending"})

        assert response.status_code == 422
        settlement_service.approve_or_reject_quotation.assert_not_called()

    def test_already_decided_400(self, client, settlement_service):
        settlement_service.approve_or_reject_quotation.side_effect = InvalidTransition(
            "approved", "rejected", "quotation already decided"
        )

        response = client.put(f"/quotations/{uuid4()}", json={"status": "rejected"})

        assert response.status_code == 400
        assert "already decided" in response.json()["message"]
