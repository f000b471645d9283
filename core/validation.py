"""Input checks shared by settlement operations."""

from core.exceptions import ValidationError


def require_reason(reason: str | None, field: str = "reason") -> str:
    """
    Return reason stripped of surrounding whitespace.

    Raises:
        ValidationError: If reason is missing or blank
    """
    if reason is None or not reason.strip():
        raise ValidationError(f"{field} is required")
    return reason.strip()
