"""
Field checks shared by request schemas.

Used from ``field_validator`` methods so each schema keeps its own field
declarations.
"""

from datetime import datetime, timezone
from typing import Optional

from email_validator import EmailNotValidError, validate_email


def check_email(value: str) -> str:
    """Validate an address but keep it exactly as sent.

    ``EmailStr`` lowercases the domain, which would make uniqueness checks
    case-insensitive for that part only.
    """
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"value is not a valid email address: {exc}") from exc
    return value


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert to UTC; naive values are taken to already be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
