from django.core.exceptions import ObjectDoesNotExist, ValidationError


class AlreadyPaidError(ValidationError):
    """Raised when a payment targets a bill that is already settled."""


class NotFoundError(ObjectDoesNotExist):
    """Raised when a referenced bill or student does not exist."""


class ConflictError(Exception):
    """Raised when a write collides with an existing key or a newer row version."""


class StoreUnavailableError(Exception):
    """Raised when the database fails mid-operation; the caller decides whether to retry."""


__all__ = [
    'AlreadyPaidError',
    'ConflictError',
    'NotFoundError',
    'StoreUnavailableError',
    'ValidationError',
]
