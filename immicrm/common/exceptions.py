"""
Domain error kinds raised by the service layer.

Each error carries the HTTP status it maps to and a caller-safe detail
message. ``immicrm.main`` registers the handlers that turn them into JSON
responses, so services never build HTTP responses themselves.
"""

from typing import Optional

from fastapi import status


class DomainError(Exception):
    """Base class for every error a caller can receive."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal"
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthenticationError(DomainError):
    """Missing, malformed, expired or otherwise invalid credential or token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthorized"
    default_detail = "Not authenticated"


class PermissionDeniedError(DomainError):
    """Authenticated, but the role or ownership does not permit the action."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "forbidden"
    default_detail = "Insufficient permissions"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    default_detail = "Not found"


class ConflictError(DomainError):
    """Uniqueness violation (username, email, case number)."""

    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"
    default_detail = "Resource already exists"


class ValidationFailedError(DomainError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "validation_error"
    default_detail = "Invalid input"


class InternalError(DomainError):
    pass
