"""
Service error taxonomy.

Every error carries the HTTP status it maps to and a public ``message``
that is safe to return to clients.  The mapping to responses lives in
``api.middleware.register_exception_handlers``.
"""

from __future__ import annotations

from typing import Any, List, Optional


class ServiceError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Malformed or missing request fields."""

    status_code = 400
    message = "Invalid input"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[List[Any]] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or []


class ConflictError(ServiceError):
    """Username already registered."""

    status_code = 409
    message = "Email already taken"


class AuthenticationError(ServiceError):
    """Wrong credentials, or a missing / invalid bearer token."""

    status_code = 401
    message = "Invalid credentials"


class StoreError(ServiceError):
    """I/O failure against the user or account tables."""

    status_code = 500
    message = "Internal server error"


class ConfigurationError(ServiceError):
    """Fatal misconfiguration detected at startup."""

    status_code = 500
    message = "Service misconfigured"
