"""Domain-specific exceptions"""

from typing import List, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed or out of range"""

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundError(DomainException):
    """Entity is absent or not owned by the caller"""

    pass


class DuplicateKeyError(DomainException):
    """Uniqueness constraint violated"""

    pass


class AuthError(DomainException):
    """Missing, invalid or expired credential"""

    pass


class PermissionDeniedError(DomainException):
    """Caller can see the entity but may not perform the action"""

    pass


class BalanceConflictError(DomainException):
    """Balance invariant would be violated"""

    pass


class LimitExceededError(BalanceConflictError):
    """Credit card balance would exceed its limit"""

    pass


class NegativeBalanceError(BalanceConflictError):
    """Credit card balance would drop below zero"""

    pass


class ReferenceInUseError(DomainException):
    """Entity is still referenced by transactions"""

    pass


class ConcurrentUpdateError(DomainException):
    """Balance row kept changing underneath the operation"""

    pass


class CategorySuggestionError(DomainException):
    """Category suggestion service returned an error or is unavailable"""

    pass
