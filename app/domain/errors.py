"""Business errors of the marketplace.

Hierarchy:
- MarketError (base)
  - ValidationError   malformed or missing input
  - AuthError         missing/invalid token, bad credentials
    - ExpiredError    expired token or refresh record
  - ForbiddenError    authenticated, but not allowed
  - NotFoundError     resource does not exist
  - ConflictError     valid request that breaks a business rule
  - InternalError     unexpected failure

The HTTP status of each kind lives in ERROR_STATUS, not on the classes.
"""

from __future__ import annotations

from typing import Any


class MarketError(Exception):
    """Base class for every error a service raises on purpose."""

    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(MarketError):
    default_message = "Invalid request"


class AuthError(MarketError):
    default_message = "Unauthorized"


class ExpiredError(AuthError):
    default_message = "Token expired"


class ForbiddenError(MarketError):
    default_message = "Forbidden"


class NotFoundError(MarketError):
    default_message = "Not found"


class ConflictError(MarketError):
    default_message = "Request conflicts with the current state"


class InternalError(MarketError):
    pass


# conflicts are reported as 400, the API never answers 409
ERROR_STATUS: dict[type[MarketError], int] = {
    ValidationError: 400,
    AuthError: 401,
    ExpiredError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    ConflictError: 400,
    InternalError: 500,
    MarketError: 500,
}


def status_for(error: MarketError) -> int:
    """Resolve the HTTP status for an error, walking up its class hierarchy."""
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500
