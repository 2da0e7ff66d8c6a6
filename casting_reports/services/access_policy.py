"""Access policy for report cases.

``resolve_role`` decides once who the caller is relative to a case and
``project_case`` is the only place where internal fields are stripped. Every
read path in the service goes through both.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Mapping
from uuid import UUID

from ..constants import ADMIN_ROLES, ReportPriority, ReportStatus
from ..models import Report, User
from ..models.base import as_utc, utcnow
from ..schemas import (
    AdminNoteResponse,
    ContentRef,
    EvidenceItem,
    ReportAdminView,
    ReportMessageResponse,
    ReportPartyView,
    ResolutionResponse,
    UserRef,
)


class CaseRole(Enum):
    REPORTER = "reporter"
    TARGET = "target"
    ADMIN = "admin"
    DENIED = "denied"


def is_admin(principal: User | None) -> bool:
    role = (getattr(principal, "role", None) or "").lower()
    return role in ADMIN_ROLES


def resolve_role(report: Report, principal: User | None) -> CaseRole:
    """Return the caller's relationship to ``report``."""

    if principal is None:
        return CaseRole.DENIED
    if is_admin(principal):
        return CaseRole.ADMIN
    if report.reporter_id == principal.id:
        return CaseRole.REPORTER
    if report.target_id is not None and report.target_id == principal.id:
        return CaseRole.TARGET
    return CaseRole.DENIED


def sub_thread_owner(report: Report, role: CaseRole) -> UUID | None:
    """Participant id of the sub-thread visible to a non-admin role."""

    if role is CaseRole.REPORTER:
        return report.reporter_id
    if role is CaseRole.TARGET:
        return report.target_id
    return None


def age_in_days(report: Report, *, now: datetime | None = None) -> int:
    created = as_utc(report.created_at)
    if created is None:
        return 0
    delta = (now or utcnow()) - created
    return max(0, delta.days)


def is_urgent(report: Report, *, now: datetime | None = None) -> bool:
    age = age_in_days(report, now=now)
    return (
        report.priority == ReportPriority.URGENT
        or (report.priority == ReportPriority.HIGH and age > 1)
        or (report.status == ReportStatus.PENDING and age > 3)
    )


def _resolution(report: Report) -> ResolutionResponse | None:
    if report.resolved_at is None or report.resolution_action is None:
        return None
    return ResolutionResponse(
        action=report.resolution_action,
        details=report.resolution_details or "",
        resolved_by=report.resolved_by,
        resolved_at=as_utc(report.resolved_at),
    )


def _messages(report: Report, participant_id: UUID | None, *, all_threads: bool) -> list[ReportMessageResponse]:
    items: list[ReportMessageResponse] = []
    for message in report.messages:
        if not all_threads and message.participant_id != participant_id:
            continue
        items.append(
            ReportMessageResponse(
                id=message.id,
                sender=message.sender,
                sender_id=message.sender_id,
                participant_id=message.participant_id,
                content=message.content,
                created_at=as_utc(message.created_at),
            )
        )
    return items


def project_case(
    report: Report,
    role: CaseRole,
    *,
    users: Mapping[UUID, UserRef] | None = None,
    content: ContentRef | None = None,
    now: datetime | None = None,
) -> ReportPartyView | ReportAdminView:
    """Build the response view of ``report`` for ``role``.

    Raises ``ValueError`` for ``CaseRole.DENIED``; callers translate denial into
    ``ReportNotFound`` before getting here.
    """

    if role is CaseRole.DENIED:
        raise ValueError("Denied principals have no view of a case")

    users = users or {}
    is_target_view = role is CaseRole.TARGET
    base = dict(
        view=role.value,
        id=report.id,
        case_number=report.case_number,
        report_type=report.report_type,
        category=report.category,
        title=report.title,
        description=report.description,
        status=report.status,
        priority=report.priority,
        reporter_id=None if is_target_view else report.reporter_id,
        reporter=None if is_target_view else users.get(report.reporter_id),
        target_id=report.target_id,
        target_kind=report.target_kind,
        target=users.get(report.target_id) if report.target_id else None,
        content_id=report.content_id,
        content_kind=report.content_kind,
        content=content,
        evidence=None if is_target_view else [EvidenceItem.model_validate(item) for item in report.evidence],
        messages=_messages(report, sub_thread_owner(report, role), all_threads=role is CaseRole.ADMIN),
        resolution=_resolution(report),
        created_at=as_utc(report.created_at),
        updated_at=as_utc(report.updated_at),
    )

    if role is not CaseRole.ADMIN:
        return ReportPartyView(**base)

    notes = [
        AdminNoteResponse(
            id=note.id,
            admin_id=note.admin_id,
            admin=users.get(note.admin_id),
            note=note.note,
            action=note.action,
            created_at=as_utc(note.created_at),
        )
        for note in report.admin_notes
    ]
    return ReportAdminView(
        **base,
        admin_notes=notes,
        resolver=users.get(report.resolved_by) if report.resolved_by else None,
        age_in_days=age_in_days(report, now=now),
        is_urgent=is_urgent(report, now=now),
    )


def referenced_user_ids(report: Report, role: CaseRole) -> set[UUID]:
    """User ids a projection for ``role`` will want display data for."""

    ids: set[UUID] = set()
    if role is not CaseRole.TARGET:
        ids.add(report.reporter_id)
    if report.target_id is not None:
        ids.add(report.target_id)
    if role is CaseRole.ADMIN:
        ids.update(note.admin_id for note in report.admin_notes)
        if report.resolved_by is not None:
            ids.add(report.resolved_by)
    return ids


__all__ = [
    "CaseRole",
    "is_admin",
    "resolve_role",
    "sub_thread_owner",
    "age_in_days",
    "is_urgent",
    "project_case",
    "referenced_user_ids",
]
