"""Customer wallet endpoints."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from api.base import success_response
from api.middleware import get_actor_id
from core.exceptions import NotFound


class TopUpRequest(BaseModel):
    amount: Decimal
    reason: str | None = None


def create_wallets_router(services: dict) -> APIRouter:
    router = APIRouter()

    settlement_svc = services["settlement"]
    wallet_svc = services["wallet"]
    user_svc = services["user"]

    def _require_customer(customer_id: UUID) -> None:
        if user_svc.get_customer(customer_id) is None:
            raise NotFound("customer", customer_id)

    @router.get("/customers/{customer_id}/wallet")
    def get_wallet(
        request: Request,
        customer_id: UUID,
        limit: int = Query(10, ge=1, le=100),
    ):
        _require_customer(customer_id)
        summary = wallet_svc.get_summary(customer_id, limit)
        return success_response(
            summary.model_dump(mode="json"),
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.get("/customers/{customer_id}/wallet/reconciliation")
    def reconcile_wallet(request: Request, customer_id: UUID):
        _require_customer(customer_id)
        report = wallet_svc.reconcile(customer_id)
        data = report.model_dump(mode="json")
        data["ledger_balance"] = str(report.ledger_balance)
        data["is_consistent"] = report.is_consistent
        return success_response(data, request_id=request.state.request_id).model_dump(mode="json")

    @router.post("/customers/{customer_id}/wallet/topup")
    def top_up(request: Request, customer_id: UUID, body: TopUpRequest):
        result = settlement_svc.top_up_wallet(
            customer_id, body.amount, body.reason, get_actor_id(request)
        )
        return success_response(
            result.model_dump(mode="json"),
            message=f"Wallet topped up by {result.transaction.amount}",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    return router
