"""
Audit trail for every settlement mutation.

Every booking, quotation, payment and wallet change is logged here. The audit
log is:
- Append-only (the table rejects UPDATE and DELETE)
- Actor-attributed (the admin who made the change)
- Detailed (captures old and new values)

Entries are written inside the caller's transaction, so a failed audit write
rolls the whole operation back.
"""

import json
from functools import partial
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient, Transaction
from core.models import AuditAction, AuditEntry
from utils.timezone import now_utc

# Decimals, dates and UUIDs all serialize through str()
_dumps = partial(json.dumps, default=str)


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state of entity
        new: New state of entity
        exclude_fields: Fields to ignore (defaults to {"updated_at"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updated_at"}
    changes = {}

    all_keys = set(old.keys()) | set(new.keys())
    for key in all_keys:
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    return changes


def split_changes(changes: dict[str, dict[str, Any]]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Turn compute_changes() output into (old_values, new_values)."""
    old_values = {field: change["old"] for field, change in changes.items()}
    new_values = {field: change["new"] for field, change in changes.items()}
    return old_values, new_values


class AuditLogger:
    """
    Audit trail for settlement changes.

    Pass model_dump(mode="json") output (or plain dicts) as values so UUIDs and
    datetimes stay JSON-compatible; Decimals are stringified on write.

    Usage:
        audit = AuditLogger(postgres)

        with postgres.transaction() as tx:
            ...
            audit.log_change(
                resource_type="booking",
                resource_id=booking.id,
                action=AuditAction.STATUS_CHANGE,
                old_values={"status": "pending"},
                new_values={"status": "confirmed"},
                user_id=actor_id,
                tx=tx,
            )

        history = audit.get_resource_history("booking", booking.id)
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        resource_type: str,
        resource_id: UUID,
        action: AuditAction,
        old_values: dict[str, Any] | None,
        new_values: dict[str, Any] | None,
        user_id: UUID,
        tx: Transaction | None = None
    ) -> AuditEntry:
        """
        Append one audit entry.

        Args:
            resource_type: "booking", "quotation", "payment" or "wallet"
            resource_id: ID of the resource (user_id for wallets)
            action: The action performed
            old_values: State before the change (None on create)
            new_values: State after the change
            user_id: Actor who made the change
            tx: Open transaction to write in; autocommits when omitted

        Returns:
            The stored entry
        """
        executor = tx if tx is not None else self.postgres

        row = executor.execute_returning(
            """
            INSERT INTO audit_log (
                id, user_id, action, resource_type, resource_id,
                old_values, new_values, created_at
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING *
            """,
            (
                uuid4(),
                user_id,
                action.value,
                resource_type,
                resource_id,
                Json(old_values, dumps=_dumps) if old_values is not None else None,
                Json(new_values, dumps=_dumps) if new_values is not None else None,
                now_utc()
            )
        )[0]

        return AuditEntry.model_validate(row)

    def get_resource_history(
        self,
        resource_type: str,
        resource_id: UUID
    ) -> list[AuditEntry]:
        """
        Get full audit history for a resource.

        Returns:
            List of audit entries, newest first.
        """
        rows = self.postgres.execute(
            """
            SELECT * FROM audit_log
            WHERE resource_type = %s AND resource_id = %s
            ORDER BY created_at DESC
            """,
            (resource_type, resource_id)
        )
        return [AuditEntry.model_validate(row) for row in rows]

    def get_user_activity(
        self,
        user_id: UUID,
        limit: int = 100
    ) -> list[AuditEntry]:
        """
        Get recent activity by an actor.

        Returns:
            List of audit entries, newest first.
        """
        rows = self.postgres.execute(
            """
            SELECT * FROM audit_log
            WHERE user_id = %s
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (user_id, limit)
        )
        return [AuditEntry.model_validate(row) for row in rows]
