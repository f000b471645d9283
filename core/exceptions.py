"""Typed exceptions for settlement failures.

Every error carries a machine-readable ``code`` that the API layer copies
into the response envelope. None of these are retried automatically except
ConflictError, which callers may retry as a whole operation.
"""


class SettlementError(Exception):
    """Base class for booking/settlement domain errors."""

    code = "SETTLEMENT_ERROR"


class ValidationError(SettlementError):
    """Malformed input: negative amounts, blank reasons, bad quantities."""

    code = "VALIDATION_ERROR"


class InvalidTransition(SettlementError):
    """
    Requested status change is not allowed from the current state.

    Carries both states so the admin UI can show them verbatim.
    """

    code = "INVALID_TRANSITION"

    def __init__(self, current: str, requested: str, detail: str | None = None):
        self.current = current
        self.requested = requested
        message = f"Cannot transition from '{current}' to '{requested}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidAssignment(SettlementError):
    """Technician reference does not resolve or is not eligible."""

    code = "INVALID_ASSIGNMENT"


class InsufficientBalance(SettlementError):
    """Wallet debit exceeds the available balance."""

    code = "INSUFFICIENT_BALANCE"

    def __init__(self, balance, requested):
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"Insufficient wallet balance: available {balance}, requested {requested}"
        )


class NotFound(SettlementError):
    """Referenced booking, quotation, payment or user does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource.capitalize()} {resource_id} not found")


class ConflictError(SettlementError):
    """
    Concurrent modification detected on the same aggregate.

    Retry the whole operation; never resubmit partial state.
    """

    code = "CONFLICT"
