"""Domain error taxonomy mapped onto HTTP status codes by the API layer."""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for errors raised by services and domain rules."""

    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra: Dict[str, Any] = extra


class ValidationError(DomainError):
    """Malformed input, rejected before anything is persisted."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **extra: Any):
        if field is not None:
            extra["field"] = field
        super().__init__(message, **extra)
        self.field = field


class ConflictError(DomainError):
    """Uniqueness or business-rule violation."""

    status_code = 409


class DuplicateError(ConflictError):
    """An entity with the same natural key already exists."""


class ProfileHasOrdersError(ConflictError):
    """A profile referenced by orders cannot be deleted."""

    status_code = 400

    def __init__(self, order_count: int):
        super().__init__(
            "Cannot delete profile with existing orders. Cards have already been "
            "distributed; deactivate the profile instead.",
            hasOrders=True,
            orderCount=order_count,
        )
        self.order_count = order_count


class NotFoundError(DomainError):
    """Missing resource, or one the caller does not own."""

    status_code = 404


class UpstreamError(DomainError):
    """An external collaborator (asset store, geo lookup) failed."""

    status_code = 500
