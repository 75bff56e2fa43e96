"""
domain.exceptions - Custom exception hierarchy for the meal planner.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class AuthenticationError(DomainError):
    """Raised when authentication fails (bad credentials, expired token)."""


class DuplicateEmailError(DomainError):
    """Raised when attempting to register with an email that already exists."""


class NotFoundError(DomainError):
    """Raised when a requested user, menu item or record does not exist."""


class PermissionDeniedError(DomainError):
    """Raised when the acting user lacks the role for an operation."""


class InvalidRequestError(DomainError):
    """Raised for semantically invalid input (bad timezone, time, budget range)."""
