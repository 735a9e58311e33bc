"""
Custom exceptions for the application.

Each exception carries the HTTP status code it maps to and an optional
list of user-facing detail lines. They are turned into the shared
``{"error": ..., "details": [...]}`` body by the handler in ``main.py``.
"""

from typing import List, Optional


class AppException(Exception):
    """Base exception class for application-specific errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[List[str]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or []
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppException):
    """Raised when required fields are missing or malformed."""

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message, status_code=400, details=details)


class DuplicateIdentityError(AppException):
    """Raised when a unique user attribute (username, phone, referral code) is taken."""

    def __init__(self, message: str = "Email already in use. Try a different one."):
        super().__init__(message, status_code=400)


class InvalidCredentialsError(AppException):
    """Raised on failed login. Same message for unknown user and bad password."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, status_code=400)


class InvalidReferralError(AppException):
    """Raised when a signup references a referral code nobody holds."""

    def __init__(self, message: str = "Invalid referral code"):
        super().__init__(message, status_code=400)


class BadRequestError(AppException):
    """Raised for malformed relations, e.g. a bad parent comment."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class AuthenticationError(AppException):
    """Raised when the bearer token is missing or invalid."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401)


class AuthorizationError(AppException):
    """Raised when the caller is not the author of a resource."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, status_code=403)


class NotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ServiceError(AppException):
    """Raised when a business operation fails unexpectedly."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)


class ExternalServiceError(AppException):
    """Raised when external service call fails."""

    def __init__(self, service: str, message: str = "External service error"):
        super().__init__(f"{service}: {message}", status_code=502)
