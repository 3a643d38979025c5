from __future__ import annotations


class AbonentServiceError(Exception):
    """Base exception for all abonent-service errors."""


class DuplicateEntryError(AbonentServiceError):
    """An abonent with the same phone number is already registered for the company."""

    def __init__(self, phone_number: str) -> None:
        super().__init__(f"abonent already registered: {phone_number}")
        self.phone_number = phone_number


class ReferentialIntegrityError(AbonentServiceError):
    """Duplicate or unregistered perimeter / tariff policy ids in a request."""


class NotFoundError(AbonentServiceError):
    """The abonent (or another referenced aggregate) does not exist."""


class ValidationFailureError(AbonentServiceError):
    """The request is malformed (e.g., blank identifiers)."""


class HandlerFailureError(AbonentServiceError):
    """A propagation subscriber failed to process an event."""
