"""Status metadata and liveness endpoints."""

from fastapi import APIRouter, Request

from api.base import success_response
from core.models import BookingStatus
from core.state_machine import allowed_targets


def booking_status_metadata() -> list[dict]:
    """Display metadata and allowed targets for every booking status, in lifecycle order."""
    return [
        {
            "value": status.value,
            "label": status.display.label,
            "label_ar": status.display.label_ar,
            "color": status.display.color,
            "is_terminal": status.is_terminal,
            "allowed_targets": [
                target.value for target in BookingStatus if target in allowed_targets(status)
            ],
        }
        for status in BookingStatus
    ]


def create_meta_router() -> APIRouter:
    router = APIRouter()

    @router.get("/meta/booking-statuses")
    def booking_statuses(request: Request):
        return success_response(
            booking_status_metadata(),
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.get("/health")
    def health(request: Request):
        return success_response(
            {"status": "ok"},
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    return router
