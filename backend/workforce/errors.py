# Overview: Domain error kinds shared by services and routes.

"""
Domain errors.

Services raise these; routes translate them with decorators.error_response().
Every kind maps to one stable HTTP status so clients can branch on it.
Anything that is not a DomainError is an unexpected failure and is answered
with a generic 500 after being logged.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for errors that are safe to show to the caller."""

    status_code = 400
    kind = "error"

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class UnauthenticatedError(DomainError):
    status_code = 401
    kind = "unauthenticated"


class ForbiddenError(DomainError):
    status_code = 403
    kind = "forbidden"


class NotFoundError(DomainError):
    status_code = 404
    kind = "not_found"


class ConflictError(DomainError):
    """409-level uniqueness violation (open session, duplicate pay week, duplicate email)."""

    status_code = 409
    kind = "conflict"


class InvalidStateError(DomainError):
    """Operation not valid for the entity's current state."""

    status_code = 400
    kind = "invalid_state"


class ValidationError(DomainError):
    """400-level input problem."""

    status_code = 400
    kind = "validation_failed"
