"""Quotation endpoints."""

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from api.middleware import get_actor_id
from core.models import QuotationCreate, QuotationDecision


class QuotationDecisionRequest(BaseModel):
    status: QuotationDecision
    complete_booking: bool | None = None


def create_quotations_router(services: dict) -> APIRouter:
    router = APIRouter()

    settlement_svc = services["settlement"]

    @router.post("/quotations", status_code=201)
    def create_quotation(request: Request, body: QuotationCreate):
        quotation = settlement_svc.create_quotation(body, get_actor_id(request))
        return success_response(
            quotation.model_dump(mode="json"),
            message="Quotation created",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.get("/quotations/{quotation_id}")
    def get_quotation(request: Request, quotation_id: UUID):
        quotation = settlement_svc.get_quotation(quotation_id)
        return success_response(
            quotation.model_dump(mode="json"),
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.put("/quotations/{quotation_id}")
    def decide_quotation(request: Request, quotation_id: UUID, body: QuotationDecisionRequest):
        result = settlement_svc.approve_or_reject_quotation(
            quotation_id,
            body.status,
            get_actor_id(request),
            complete_booking=body.complete_booking,
        )
        return success_response(
            result.model_dump(mode="json"),
            message=f"Quotation {result.quotation.status.value}",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    return router
