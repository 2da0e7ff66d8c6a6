"""Project-wide constant values for report cases."""
from __future__ import annotations

from enum import StrEnum


class ReportType(StrEnum):
    CASTING = "casting"
    USER = "user"
    APPLICATION = "application"
    BLOG = "blog"
    NEWS = "news"
    SYSTEM = "system"
    OTHER = "other"


class ReportCategory(StrEnum):
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    SPAM = "spam"
    FAKE_INFORMATION = "fake_information"
    HARASSMENT = "harassment"
    COPYRIGHT_VIOLATION = "copyright_violation"
    TECHNICAL_ISSUE = "technical_issue"
    PAYMENT_ISSUE = "payment_issue"
    SAFETY_CONCERN = "safety_concern"
    OTHER = "other"


class ReportStatus(StrEnum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ReportPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ResolutionAction(StrEnum):
    WARNING_SENT = "warning_sent"
    USER_SUSPENDED = "user_suspended"
    USER_BANNED = "user_banned"
    CONTENT_REMOVED = "content_removed"
    CASTING_REMOVED = "casting_removed"
    APPLICATION_REJECTED = "application_rejected"
    NO_ACTION = "no_action"
    OTHER = "other"


class NoteAction(StrEnum):
    STATUS_CHANGE = "status_change"
    PRIORITY_CHANGE = "priority_change"
    NOTE_ADDED = "note_added"
    ACTION_TAKEN = "action_taken"


class EvidenceType(StrEnum):
    FILE = "file"
    IMAGE = "image"
    DOCUMENT = "document"
    LINK = "link"


class MessageSender(StrEnum):
    ADMIN = "admin"
    USER = "user"


TERMINAL_STATUSES = frozenset({ReportStatus.RESOLVED, ReportStatus.DISMISSED})

# Report types that never implicate a user; they carry no message thread.
UNTARGETED_REPORT_TYPES = frozenset({ReportType.SYSTEM, ReportType.OTHER})

# Report types whose subject is a piece of content owned by the target.
CONTENT_REPORT_TYPES = frozenset({ReportType.CASTING, ReportType.BLOG, ReportType.NEWS})

# Report types whose optional content_id is owned by the target; the owner is looked up.
OWNED_CONTENT_REPORT_TYPES = CONTENT_REPORT_TYPES | {ReportType.APPLICATION}

ADMIN_ROLES = frozenset({"owner", "admin"})

# Sort rank used by the admin queue (urgent first).
PRIORITY_RANK = {
    ReportPriority.URGENT: 4,
    ReportPriority.HIGH: 3,
    ReportPriority.MEDIUM: 2,
    ReportPriority.LOW: 1,
}

CASE_NUMBER_PREFIX = "REP"
CASE_COUNTER_NAME = "report_case_number"

ALREADY_RESOLVED_DETAIL = "this case has already been resolved"  # short reusable message
UPSTREAM_FAILURE_DETAIL = "A dependent service is temporarily unavailable. Please retry."

__all__ = [
    "ReportType",
    "ReportCategory",
    "ReportStatus",
    "ReportPriority",
    "ResolutionAction",
    "NoteAction",
    "EvidenceType",
    "MessageSender",
    "TERMINAL_STATUSES",
    "UNTARGETED_REPORT_TYPES",
    "CONTENT_REPORT_TYPES",
    "OWNED_CONTENT_REPORT_TYPES",
    "ADMIN_ROLES",
    "PRIORITY_RANK",
    "CASE_NUMBER_PREFIX",
    "CASE_COUNTER_NAME",
    "ALREADY_RESOLVED_DETAIL",
    "UPSTREAM_FAILURE_DETAIL",
]
