"""Audit history endpoint."""

from uuid import UUID

from fastapi import APIRouter, Request

from api.base import success_response
from core.exceptions import ValidationError

AUDITED_RESOURCES = {"booking", "quotation", "payment", "wallet"}


def create_audit_router(services: dict) -> APIRouter:
    router = APIRouter()

    audit = services["audit"]

    @router.get("/audit/{resource_type}/{resource_id}")
    def get_history(request: Request, resource_type: str, resource_id: UUID):
        if resource_type not in AUDITED_RESOURCES:
            raise ValidationError(
                f"Unknown resource type '{resource_type}'. "
                f"Valid types: {', '.join(sorted(AUDITED_RESOURCES))}"
            )

        entries = audit.get_resource_history(resource_type, resource_id)
        return success_response(
            [e.model_dump(mode="json") for e in entries],
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    return router
