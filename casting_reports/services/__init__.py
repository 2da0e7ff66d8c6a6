"""Convenience exports for service layer."""
from .auth_service import create_access_token, decode_access_token, get_current_user, require_admin, require_roles
from .errors import (
    AlreadyResolved,
    DuplicateReport,
    InvalidTransition,
    ReportConflict,
    ReportError,
    ReportForbidden,
    ReportNotFound,
    ReportValidationError,
    UpstreamFailure,
)
from .notification_service import NotificationType, notify

__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "require_admin",
    "require_roles",
    "AlreadyResolved",
    "DuplicateReport",
    "InvalidTransition",
    "ReportConflict",
    "ReportError",
    "ReportForbidden",
    "ReportNotFound",
    "ReportValidationError",
    "UpstreamFailure",
    "NotificationType",
    "notify",
]
