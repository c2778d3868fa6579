"""Booking domain errors.

Each error carries the HTTP status it maps to; ``main.py`` registers a single
handler for ``BookingError`` that renders them.
"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for errors surfaced to booking callers"""

    status_code = 500
    code = "internal_error"

    def __init__(self, detail: str, extra: Optional[dict[str, Any]] = None):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra or {}

    def to_dict(self) -> dict[str, Any]:
        body = {"success": False, "error": self.code, "detail": self.detail}
        body.update(self.extra)
        return body


class ValidationError(BookingError):
    """Malformed or missing input; ``errors`` holds field-level detail"""

    status_code = 400
    code = "validation_error"

    def __init__(self, detail: str, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(detail, {"errors": errors or []})
        self.errors = errors or []


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"


class SchedulingConflictError(BookingError):
    """The requested slot is already held by a live booking"""

    status_code = 409
    code = "scheduling_conflict"


class PolicyViolationError(BookingError):
    """A provider scheduling rule rejected the request; ``rule`` names it"""

    status_code = 400
    code = "policy_violation"

    def __init__(self, rule: str, detail: str):
        super().__init__(detail, {"rule": rule})
        self.rule = rule


class PricingFailureError(BookingError):
    """Travel could not be priced for a request that requires it"""

    status_code = 400
    code = "pricing_failure"

    def __init__(self, detail: str, warnings: Optional[list[str]] = None):
        super().__init__(detail, {"warnings": warnings or []})
        self.warnings = warnings or []


class InvalidTransitionError(BookingError):
    status_code = 409
    code = "invalid_transition"


class InternalError(BookingError):
    """Persistence or unexpected failure; detail is logged, not returned"""

    status_code = 500
    code = "internal_error"

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.code, "detail": "Internal server error"}
