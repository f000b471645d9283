"""Tests for customer wallet endpoints."""

from decimal import Decimal
from uuid import uuid4

from core.exceptions import NotFound, ValidationError
from core.models import TopUpResult, UserRef, WalletReconciliation, WalletSummary
from factories import ADMIN_ID, CUSTOMER_ID, wallet_model, wallet_transaction_model


def _customer():
    return UserRef(id=CUSTOMER_ID, role="customer", status="active")


class TestGetWallet:

    def test_summary(self, client, user_service, wallet_service):
        user_service.get_customer.return_value = _customer()
        wallet_service.get_summary.return_value = WalletSummary(
            wallet=wallet_model("25.00"), recent_transactions=[wallet_transaction_model("25.00")]
        )

        response = client.get(f"/customers/{CUSTOMER_ID}/wallet?limit=5")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["wallet"]["balance"] == "25.00"
        assert len(data["recent_transactions"]) == 1
        wallet_service.get_summary.assert_called_once_with(CUSTOMER_ID, 5)

    def test_non_customer_404(self, client, user_service, wallet_service):
        user_service.get_customer.return_value = None

        response = client.get(f"/customers/{uuid4()}/wallet")

        assert response.status_code == 404
        wallet_service.get_summary.assert_not_called()

    def test_limit_bounded(self, client, user_service):
        user_service.get_customer.return_value = _customer()

        assert client.get(f"/customers/{CUSTOMER_ID}/wallet?limit=0").status_code == 422


class TestReconciliation:

    def test_report(self, client, user_service, wallet_service):
        user_service.get_customer.return_value = _customer()
        wallet_service.reconcile.return_value = WalletReconciliation(
            user_id=CUSTOMER_ID,
            balance=Decimal("65.00"),
            total_earned=Decimal("100.50"),
            total_spent=Decimal("35.50"),
            ledger_credits=Decimal("100.50"),
            ledger_debits=Decimal("35.50"),
        )

        response = client.get(f"/customers/{CUSTOMER_ID}/wallet/reconciliation")

        data = response.json()["data"]
        assert data["ledger_balance"] == "65.00"
        assert data["is_consistent"] is True


class TestTopUp:

    def test_topped_up(self, client, settlement_service):
        settlement_service.top_up_wallet.return_value = TopUpResult(
            wallet=wallet_model("50.00"), transaction=wallet_transaction_model("50.00")
        )

        response = client.post(
            f"/customers/{CUSTOMER_ID}/wallet/topup", json={"amount": "50.00", "reason": "goodwill"}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Wallet topped up by 50.00"
        settlement_service.top_up_wallet.assert_called_once_with(
            CUSTOMER_ID, Decimal("50.00"), "goodwill", ADMIN_ID
        )

    def test_non_positive_amount_400(self, client, settlement_service):
        settlement_service.top_up_wallet.side_effect = ValidationError("amount must be greater than 0, got -5")

        response = client.post(f"/customers/{CUSTOMER_ID}/wallet/topup", json={"amount": "-5", "reason": "x"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_unknown_customer_404(self, client, settlement_service):
        settlement_service.top_up_wallet.side_effect = NotFound("customer", CUSTOMER_ID)

        response = client.post(f"/customers/{CUSTOMER_ID}/wallet/topup", json={"amount": "5", "reason": "x"})

        assert response.status_code == 404
