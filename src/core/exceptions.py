"""Domain error taxonomy.

Services raise these; the API layer renders them (see
``api.exceptions.domain_exception_handler``).  Every class derives from
``ValueError`` so callers that only care about "the operation was refused"
can keep catching that.
"""
from __future__ import annotations

from decimal import Decimal


class DomainError(ValueError):
    """Base class for refusals that leave the store untouched."""

    status_code = 400
    code = "error"

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def as_payload(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        for key, value in self.extra.items():
            payload[key] = str(value) if isinstance(value, Decimal) else value
        return payload


class ValidationFailed(DomainError):
    """Bad input (non-positive amount, missing id, unknown action...)."""

    code = "validation_error"


class NotFound(DomainError):
    """The entity does not exist or is not owned by the caller."""

    status_code = 404
    code = "not_found"


class Conflict(DomainError):
    """The entity is in a state that forbids the requested transition."""

    status_code = 409
    code = "conflict"


class InsufficientFunds(DomainError):
    """The owner's wallet cannot cover the requested amount."""

    code = "insufficient_funds"

    def __init__(self, requested: Decimal, available: Decimal, message: str | None = None):
        self.requested = requested
        self.available = available
        super().__init__(
            message
            or f"Insufficient funds: {requested:.2f} requested, {available:.2f} available.",
            requested=requested,
            available=available,
        )
