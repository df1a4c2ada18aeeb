"""Custom exception classes for the application."""

from typing import Any


class GetCareKoreaError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(GetCareKoreaError):
    """Authentication failed."""

    pass


class InvalidTokenError(AuthenticationError):
    """Invalid or expired token."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


# External API Errors
class ExternalAPIError(GetCareKoreaError):
    """Error calling external API."""

    def __init__(self, api_name: str, message: str) -> None:
        self.api_name = api_name
        super().__init__(f"{api_name} API error: {message}")


class RateLimitExceededError(ExternalAPIError):
    """Rate limit exceeded for external API."""

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "Rate limit exceeded")


# Validation Errors
class FeedbackValidationError(GetCareKoreaError):
    """Feedback payload failed validation."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message, details={"field": field})
