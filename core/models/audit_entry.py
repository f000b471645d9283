"""Audit log entry model."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class AuditAction(Enum):
    """Type of change made to a resource."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CANCEL = "cancel"
    REFUND = "refund"
    STATUS_CHANGE = "status_change"


class AuditEntry(BaseModel):
    """One immutable audit record."""

    id: UUID
    user_id: UUID
    action: AuditAction
    resource_type: str
    resource_id: UUID
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    created_at: datetime

    model_config = {"from_attributes": True}
