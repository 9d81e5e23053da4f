from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when credentials or the session are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    status_code = 409


class GoneError(DomainError):
    status_code = 410


class ExternalServiceError(DomainError):
    """Raised when Jira or Atlassian answers with an error.

    ``status_code`` is what our API returns; ``upstream_status`` is what the
    remote service returned (None on network failures).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 502,
        upstream_status: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.upstream_status = upstream_status
        self.details = details
