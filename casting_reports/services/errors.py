"""Domain errors raised by the report case services.

Routers never see raw SQLAlchemy or collaborator exceptions: the service layer
translates them into one of the types below and ``main.py`` renders them as a
structured ``{"detail": {"code", "message", "field"}}`` body.
"""
from __future__ import annotations

from typing import Any

from ..constants import ALREADY_RESOLVED_DETAIL, UPSTREAM_FAILURE_DETAIL


class ReportError(RuntimeError):
    """Base class for report case failures."""

    status_code = 400
    code = "report_error"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field:
            detail["field"] = self.field
        return detail


class ReportValidationError(ReportError):
    """A required field is missing or malformed."""

    status_code = 422
    code = "validation_error"


class DuplicateReport(ReportValidationError):
    """The reporter already filed the same kind of case against this target recently."""

    code = "duplicate_report"


class ReportNotFound(ReportError):
    """The case does not exist or the caller may not know that it exists."""

    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Report not found") -> None:
        super().__init__(message)


class ReportForbidden(ReportError):
    status_code = 403
    code = "forbidden"


class InvalidTransition(ReportError):
    status_code = 409
    code = "invalid_transition"


class AlreadyResolved(InvalidTransition):
    code = "already_resolved"

    def __init__(self, message: str = ALREADY_RESOLVED_DETAIL) -> None:
        super().__init__(message)


class ReportConflict(ReportError):
    """Another request modified the case concurrently; the caller may retry."""

    status_code = 409
    code = "conflict"


class UpstreamFailure(ReportError):
    """A collaborator (storage, identity, content lookup) failed; nothing was written."""

    status_code = 502
    code = "upstream_failure"

    def __init__(self, message: str = UPSTREAM_FAILURE_DETAIL) -> None:
        super().__init__(message)


__all__ = [
    "ReportError",
    "ReportValidationError",
    "DuplicateReport",
    "ReportNotFound",
    "ReportForbidden",
    "InvalidTransition",
    "AlreadyResolved",
    "ReportConflict",
    "UpstreamFailure",
]
