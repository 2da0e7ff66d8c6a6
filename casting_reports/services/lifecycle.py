"""Lifecycle engine for report cases.

These functions are the only code allowed to change ``status``, ``priority``
and the resolution columns of a :class:`Report`. Each accepted call appends
exactly one admin note, so the audit trail can be replayed from
``admin_notes`` alone. They mutate the ORM instance in place; committing (and
locking the row beforehand) is the caller's job.
"""
from __future__ import annotations

import logging
from datetime import datetime
from enum import StrEnum
from typing import TypeVar
from uuid import UUID

from ..config import get_settings
from ..constants import NoteAction, ReportPriority, ReportStatus, ResolutionAction, TERMINAL_STATUSES
from ..models import Report, ReportAdminNote
from ..models.base import utcnow
from .errors import AlreadyResolved, InvalidTransition, ReportValidationError

logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=StrEnum)

# Resolution stamped when an admin jumps straight to a terminal status.
_IMPLICIT_RESOLUTION = {
    ReportStatus.RESOLVED: ResolutionAction.OTHER,
    ReportStatus.DISMISSED: ResolutionAction.NO_ACTION,
}


def parse_choice(enum_cls: type[_E], value: str | None, *, field: str) -> _E:
    """Coerce ``value`` into ``enum_cls`` or raise a field-level validation error."""

    cleaned = (value or "").strip().lower()
    if not cleaned:
        raise ReportValidationError(f"{field} is required", field=field)
    try:
        return enum_cls(cleaned)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ReportValidationError(f"{field} must be one of: {allowed}", field=field) from exc


def require_text(value: str | None, *, field: str, max_length: int | None = None) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ReportValidationError(f"{field} must not be empty", field=field)
    if max_length is not None and len(cleaned) > max_length:
        raise ReportValidationError(f"{field} must be at most {max_length} characters", field=field)
    return cleaned


def is_terminal(report: Report) -> bool:
    return report.status in TERMINAL_STATUSES


def _optional_comment(note: str | None) -> str | None:
    if note is None or not note.strip():
        return None
    return require_text(note, field="note", max_length=get_settings().report_note_max_length)


def _append_note(report: Report, *, admin_id: UUID, note: str, action: NoteAction, now: datetime) -> ReportAdminNote:
    entry = ReportAdminNote(
        admin_id=admin_id,
        note=note,
        action=action.value,
        position=len(report.admin_notes) + 1,
        created_at=now,
    )
    report.admin_notes.append(entry)
    report.updated_at = now
    return entry


def _stamp_resolution(report: Report, *, action: ResolutionAction, details: str, actor_id: UUID, now: datetime) -> None:
    report.resolution_action = action.value
    report.resolution_details = details
    report.resolved_by = actor_id
    report.resolved_at = now


def set_status(
    report: Report,
    new_status: str | None,
    *,
    actor_id: UUID,
    note: str | None = None,
) -> ReportAdminNote:
    """Move ``report`` to ``new_status``.

    Any non-current status is reachable from a non-terminal case. Jumping to
    ``resolved`` or ``dismissed`` also stamps a resolution so that the
    resolution/terminal-status invariant holds.
    """

    if is_terminal(report):
        raise AlreadyResolved()
    target = parse_choice(ReportStatus, new_status, field="status")
    comment = _optional_comment(note)
    if target == report.status:
        raise InvalidTransition(f"case is already {target.value}")

    now = utcnow()
    previous = report.status
    report.status = target.value
    summary = f"status changed to {target.value}"
    text = f"{summary}: {comment}" if comment else summary
    if target in TERMINAL_STATUSES:
        # The admin comment stays in the note; parties only see the summary.
        _stamp_resolution(
            report,
            action=_IMPLICIT_RESOLUTION[target],
            details=summary,
            actor_id=actor_id,
            now=now,
        )

    logger.info("Report %s status %s -> %s by %s", report.case_number, previous, target.value, actor_id)
    return _append_note(report, admin_id=actor_id, note=text, action=NoteAction.STATUS_CHANGE, now=now)


def set_priority(
    report: Report,
    new_priority: str | None,
    *,
    actor_id: UUID,
    note: str | None = None,
) -> ReportAdminNote:
    """Change triage priority; allowed even after resolution."""

    target = parse_choice(ReportPriority, new_priority, field="priority")
    comment = _optional_comment(note)
    if target == report.priority:
        raise InvalidTransition(f"case priority is already {target.value}")

    now = utcnow()
    previous = report.priority
    report.priority = target.value
    text = f"priority changed to {target.value}"
    if comment:
        text = f"{text}: {comment}"

    logger.info("Report %s priority %s -> %s by %s", report.case_number, previous, target.value, actor_id)
    return _append_note(report, admin_id=actor_id, note=text, action=NoteAction.PRIORITY_CHANGE, now=now)


def resolve(
    report: Report,
    action: str | None,
    details: str | None,
    *,
    actor_id: UUID,
) -> ReportAdminNote:
    """Close ``report`` with an administrative outcome."""

    if is_terminal(report):
        raise AlreadyResolved()
    resolution_action = parse_choice(ResolutionAction, action, field="action")
    resolution_details = require_text(details, field="details")

    now = utcnow()
    report.status = ReportStatus.RESOLVED.value
    _stamp_resolution(report, action=resolution_action, details=resolution_details, actor_id=actor_id, now=now)

    logger.info("Report %s resolved with %s by %s", report.case_number, resolution_action.value, actor_id)
    return _append_note(
        report,
        admin_id=actor_id,
        note=f"resolved with {resolution_action.value}: {resolution_details}",
        action=NoteAction.ACTION_TAKEN,
        now=now,
    )


def add_note(report: Report, note: str | None, *, actor_id: UUID) -> ReportAdminNote:
    text = require_text(note, field="note", max_length=get_settings().report_note_max_length)
    return _append_note(report, admin_id=actor_id, note=text, action=NoteAction.NOTE_ADDED, now=utcnow())


__all__ = [
    "parse_choice",
    "require_text",
    "is_terminal",
    "set_status",
    "set_priority",
    "resolve",
    "add_note",
]
