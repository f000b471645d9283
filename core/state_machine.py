"""
Booking status state machine.

Owns the single table of allowed transitions. Services ask it before every
status write; it never touches the database.

Some edges can only be taken as the side effect of another operation:
- into TECHNICIAN_ASSIGNED: only through assign_technician (needs a technician)
- IN_PROGRESS -> QUOTATION_PENDING: only when a quotation is raised
- QUOTATION_PENDING -> IN_PROGRESS / COMPLETED: only on a quotation decision
- into CANCELLED: only through cancel_booking (needs a reason)
"""

from core.exceptions import InvalidTransition
from core.models import BookingStatus

S = BookingStatus

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.TECHNICIAN_ASSIGNED, S.IN_PROGRESS, S.CANCELLED}),
    S.TECHNICIAN_ASSIGNED: frozenset({S.EN_ROUTE, S.IN_PROGRESS, S.CANCELLED}),
    S.EN_ROUTE: frozenset({S.IN_PROGRESS, S.CANCELLED}),
    S.IN_PROGRESS: frozenset({S.QUOTATION_PENDING, S.COMPLETED, S.CANCELLED}),
    S.QUOTATION_PENDING: frozenset({S.IN_PROGRESS, S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
}

# Edges that a plain status write may not take
_SIDE_EFFECT_ONLY: dict[tuple[BookingStatus, BookingStatus], str] = {
    (S.IN_PROGRESS, S.QUOTATION_PENDING): "raised automatically when a quotation is created",
    (S.QUOTATION_PENDING, S.IN_PROGRESS): "decided by approving or rejecting the quotation",
    (S.QUOTATION_PENDING, S.COMPLETED): "decided by approving the quotation",
}

_SIDE_EFFECT_ONLY_TARGETS: dict[BookingStatus, str] = {
    S.TECHNICIAN_ASSIGNED: "use assign-technician",
    S.CANCELLED: "use cancel with a reason",
}


def allowed_targets(current: BookingStatus) -> frozenset[BookingStatus]:
    """All statuses reachable from current in one step."""
    return ALLOWED_TRANSITIONS[current]


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def assert_transition(
    current: BookingStatus,
    target: BookingStatus,
    *,
    side_effect: bool = False
) -> None:
    """
    Validate a status change.

    Args:
        current: Booking's status as read under lock
        target: Requested status
        side_effect: True when the change is driven by another operation
            (assignment, quotation, cancellation) rather than a plain write

    Raises:
        InvalidTransition: If current is terminal, the edge does not exist,
            or the edge requires a dedicated operation
    """
    if current.is_terminal:
        raise InvalidTransition(current.value, target.value, f"'{current.value}' is terminal")

    if not can_transition(current, target):
        allowed = ", ".join(sorted(s.value for s in ALLOWED_TRANSITIONS[current]))
        raise InvalidTransition(current.value, target.value, f"allowed: {allowed}")

    if side_effect:
        return

    if target in _SIDE_EFFECT_ONLY_TARGETS:
        raise InvalidTransition(current.value, target.value, _SIDE_EFFECT_ONLY_TARGETS[target])

    reason = _SIDE_EFFECT_ONLY.get((current, target))
    if reason is not None:
        raise InvalidTransition(current.value, target.value, reason)
