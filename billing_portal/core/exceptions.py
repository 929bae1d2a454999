"""Custom exceptions for the billing portal."""

from __future__ import annotations


class PortalException(Exception):
    """Base exception for the billing portal."""

    pass


class ValidationError(PortalException):
    """Raised when validation fails."""

    pass


class SubscriptionValidationError(ValidationError):
    """Raised when a subscription row cannot be billed as stored."""

    code = "invalid-subscription"


class NotFoundError(PortalException):
    """Raised when a resource is not found."""

    pass


class DatabaseError(PortalException):
    """Raised when a database operation fails."""

    pass


class ConfigurationError(PortalException):
    """Raised when configuration is invalid."""

    pass


class AuthenticationError(PortalException):
    """Raised when authentication fails."""

    pass


class AuthorizationError(PortalException):
    """Raised when an authenticated caller is not allowed to act."""

    pass


class RateLimitError(PortalException):
    """Raised when a caller must wait before repeating an action."""

    pass


class NotificationError(PortalException):
    """Raised when the email transport rejects or fails a message."""

    def __init__(self, message: str, code: str | int | None = None, response: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.response = response
