"""
Read-only lookups of users owned by the identity service.

Settlement logic only needs a user's role and status: assignment requires an
active technician and top-ups require a customer.
"""

from uuid import UUID

from clients.postgres_client import PostgresClient, Transaction
from core.models import UserRef, UserRole


class UserService:
    """Service for user reference lookups."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get_by_id(self, user_id: UUID, tx: Transaction | None = None) -> UserRef | None:
        """
        Get user reference by ID.

        Args:
            user_id: User UUID
            tx: Read inside this transaction when given

        Returns:
            UserRef if found, None otherwise.
        """
        executor = tx if tx is not None else self.postgres
        row = executor.execute_single(
            "SELECT id, role, status FROM users WHERE id = %s",
            (user_id,)
        )

        if row is None:
            return None

        return UserRef.model_validate(row)

    def get_customer(self, user_id: UUID, tx: Transaction | None = None) -> UserRef | None:
        """Get user only if it is a customer."""
        user = self.get_by_id(user_id, tx)
        if user is None or user.role != UserRole.CUSTOMER:
            return None
        return user
