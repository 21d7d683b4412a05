# backend/services/errors.py
"""
Errors raised by the fare/ticket services.

Every error is user-facing: the app-level handler renders it as
{"error": <message>, "code": <code>} with the error's HTTP status.
"""

from __future__ import annotations


class TicketingError(Exception):
    code = "TICKETING_ERROR"
    status = 400

    def __init__(self, message: str | None = None, **details):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_dict(self) -> dict:
        out = {"error": self.message, "code": self.code}
        if self.details:
            out.update(self.details)
        return out


class InvalidSectionOrder(TicketingError):
    code = "INVALID_SECTION_ORDER"


class NegativeSection(TicketingError):
    code = "NEGATIVE_SECTION"


class NotFound(TicketingError):
    code = "NOT_FOUND"
    status = 404


class BackwardTravel(TicketingError):
    code = "BACKWARD_TRAVEL"


class DuplicateTicketNumber(TicketingError):
    code = "DUPLICATE_TICKET_NUMBER"
    status = 409


class InvalidTicketTransition(TicketingError):
    code = "INVALID_TICKET_TRANSITION"
    status = 409


class NonMonotonicFare(TicketingError):
    code = "NON_MONOTONIC_FARE"


class InvalidPayload(TicketingError):
    code = "INVALID_PAYLOAD"


class Forbidden(TicketingError):
    code = "FORBIDDEN"
    status = 403
