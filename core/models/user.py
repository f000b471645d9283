"""Read-only user references owned by the identity service."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class UserRole(str, Enum):
    CUSTOMER = "customer"
    TECHNICIAN = "technician"
    ADMIN = "admin"
    SUPPORT = "support"
    FINANCE = "finance"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class UserRef(BaseModel):
    """The slice of a user record settlement logic needs."""

    id: UUID
    role: UserRole
    status: UserStatus

    model_config = {"from_attributes": True}

    @property
    def is_active_technician(self) -> bool:
        return self.role == UserRole.TECHNICIAN and self.status == UserStatus.ACTIVE
