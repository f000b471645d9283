"""Tests for the audit history endpoint."""

from uuid import uuid4

from core.models import AuditAction, AuditEntry
from factories import ADMIN_ID
from utils.timezone import now_utc


class TestAuditHistory:

    def test_history_returned(self, client, audit):
        booking_id = uuid4()
        audit.get_resource_history.return_value = [
            AuditEntry(
                id=uuid4(), user_id=ADMIN_ID, action=AuditAction.CANCEL, resource_type="booking",
                resource_id=booking_id, old_values={"status": "pending"},
                new_values={"status": "cancelled"}, created_at=now_utc(),
            )
        ]

        response = client.get(f"/audit/booking/{booking_id}")

        assert response.status_code == 200
        entries = response.json()["data"]
        assert entries[0]["action"] == "cancel"
        assert entries[0]["user_id"] == str(ADMIN_ID)
        audit.get_resource_history.assert_called_once_with("booking", booking_id)

    def test_unknown_resource_type_400(self, client, audit):
        response = client.get(f"/audit/ticket/{uuid4()}")

        assert response.status_code == 400
        assert "Valid types: booking, payment, quotation, wallet" in response.json()["message"]
        audit.get_resource_history.assert_not_called()
