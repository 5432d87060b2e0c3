"""
Error taxonomy for the settlement pipeline.

Each error kind carries the HTTP status it maps to, a stable machine-readable
code, and whether the caller may retry. Business rejections that are normal
outcomes (a listing that is simply not available, a booking lookup that finds
nothing) are modelled as return values by the services; only terminal or
retryable failures are raised.

DownstreamSyncFailure has no exception class: a failed PMS write after payment
capture is never surfaced to the guest and exists only as an error-level
event log entry.
"""

from __future__ import annotations

from typing import Any, Optional


class SettlementError(Exception):
    """Base class for errors the HTTP layer renders as a structured response."""

    code = "error"
    status_code = 500
    retryable = False

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(SettlementError):
    """Malformed or inconsistent request data."""

    code = "validation_error"
    status_code = 400


class AvailabilityConflict(SettlementError):
    """The PMS reports the listing is not bookable for the requested stay."""

    code = "availability_conflict"
    status_code = 409


class PriceMismatch(SettlementError):
    """The client-submitted price diverges from the server-computed one."""

    code = "price_mismatch"
    status_code = 409


class ServiceUnavailable(SettlementError):
    """The PMS, the payment processor or the database could not be reached."""

    code = "service_unavailable"
    status_code = 503
    retryable = True


class NotFound(SettlementError):
    code = "not_found"
    status_code = 404


class Unauthorized(SettlementError):
    code = "unauthorized"
    status_code = 401


class Forbidden(SettlementError):
    code = "forbidden"
    status_code = 403


class InvalidState(SettlementError):
    """The booking is not in a state that allows the requested transition."""

    code = "invalid_state"
    status_code = 409


class SignatureInvalid(SettlementError):
    """A webhook payload failed signature verification."""

    code = "signature_invalid"
    status_code = 400
