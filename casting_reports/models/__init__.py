"""Convenience exports for ORM models."""
from .notification import Notification
from .report import Report, ReportAdminNote, ReportCounter, ReportEvidence, ReportMessage
from .user import User

__all__ = [
    "Notification",
    "Report",
    "ReportAdminNote",
    "ReportCounter",
    "ReportEvidence",
    "ReportMessage",
    "User",
]
