"""Case service: the public API for filing, reading and administering report cases.

Routers call only this module. It resolves the caller's role through the
access policy, delegates state changes to the lifecycle engine or the thread
manager, commits under a per-case row lock and projects the result for the
caller. Failures leave the module as :mod:`.errors` exceptions.
"""
from __future__ import annotations

import logging
import math
from datetime import timedelta
from typing import Callable, Iterable, Sequence, TypeVar
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..clients.content_api import ContentLookupError, fetch_content, is_configured
from ..config import get_settings
from ..constants import (
    CONTENT_REPORT_TYPES,
    OWNED_CONTENT_REPORT_TYPES,
    UNTARGETED_REPORT_TYPES,
    EvidenceType,
    ReportCategory,
    ReportPriority,
    ReportStatus,
    ReportType,
    ResolutionAction,
    TERMINAL_STATUSES,
)
from ..models import Report, ReportEvidence, User
from ..models.base import utcnow
from ..schemas import (
    AdminReportFilters,
    AdminReportListResponse,
    ContentRef,
    EvidenceLink,
    PlatformReportStats,
    ReportAdminView,
    ReportCreateResponse,
    ReportFilePayload,
    ReportListResponse,
    ReportPartyView,
    ReportStatsOverview,
    UserReportStats,
)
from . import case_store, lifecycle, thread_service
from .access_policy import CaseRole, is_admin, project_case, referenced_user_ids, resolve_role
from .errors import (
    DuplicateReport,
    ReportConflict,
    ReportError,
    ReportForbidden,
    ReportNotFound,
    ReportValidationError,
    UpstreamFailure,
)
from .identity_service import resolve_user, resolve_users
from .notification_service import NotificationType, notify
from .storage_service import (
    StorageConfigurationError,
    StorageDeletionError,
    StorageUploadError,
    StoredFile,
    delete_stored_file,
    store_file,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_ContentCache = dict[tuple[str, str], ContentRef | None]


# ---------------------------------------------------------------------------
# Projection helpers
# ---------------------------------------------------------------------------


def _content_ref(report: Report, cache: _ContentCache | None = None) -> ContentRef | None:
    if not report.content_id or not report.content_kind or not is_configured():
        return None
    cache_key = (report.content_kind, report.content_id)
    if cache is not None and cache_key in cache:
        return cache[cache_key]
    try:
        ref = fetch_content(report.content_kind, report.content_id)
    except ContentLookupError:
        ref = None
    if cache is not None:
        cache[cache_key] = ref
    return ref


def _project(db: Session, report: Report, role: CaseRole) -> ReportPartyView | ReportAdminView:
    users = resolve_users(db, referenced_user_ids(report, role))
    return project_case(report, role, users=users, content=_content_ref(report))


def _project_many(db: Session, reports: Sequence[Report], role: CaseRole) -> list:
    wanted: set[UUID] = set()
    for report in reports:
        wanted |= referenced_user_ids(report, role)
    users = resolve_users(db, wanted)
    cache: _ContentCache = {}
    return [project_case(report, role, users=users, content=_content_ref(report, cache)) for report in reports]


def _total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


def _notify_quietly(recipients: Iterable[UUID | None], event: NotificationType, content: str, report: Report) -> None:
    payload = {"report_id": str(report.id), "case_number": report.case_number, "status": report.status}
    for recipient_id in {recipient for recipient in recipients if recipient is not None}:
        try:
            notify(recipient_id, event, content, payload=payload)
        except Exception:
            logger.warning("Notification %s for %s failed", event, recipient_id, exc_info=True)


def _require_admin(actor: User) -> None:
    if not is_admin(actor):
        raise ReportForbidden("Administrator role required")


def _optional_status(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return lifecycle.parse_choice(ReportStatus, value, field="status").value


# ---------------------------------------------------------------------------
# Filing
# ---------------------------------------------------------------------------


def _validate_links(links: Sequence[EvidenceLink]) -> list[EvidenceLink]:
    cleaned: list[EvidenceLink] = []
    for link in links:
        url = (link.url or "").strip()
        if not url.lower().startswith(("http://", "https://")):
            raise ReportValidationError("Evidence links must be http(s) URLs", field="evidence_links")
        cleaned.append(EvidenceLink(url=url, description=(link.description or "").strip() or None))
    return cleaned


def _resolve_target(db: Session, reporter: User, report_type: ReportType, payload: ReportFilePayload) -> UUID | None:
    target_id = payload.target_id
    content_id = (payload.content_id or "").strip() or None

    # When the content service is reachable, the content owner is the target.
    if content_id and report_type in OWNED_CONTENT_REPORT_TYPES and is_configured():
        try:
            content = fetch_content(report_type.value, content_id)
        except ContentLookupError as exc:
            raise UpstreamFailure() from exc
        if content is None:
            raise ReportValidationError(f"{report_type.value} not found", field="content_id")
        if content.owner_id is None:
            raise ReportValidationError("The owner of this content could not be determined", field="content_id")
        if target_id is not None and target_id != content.owner_id:
            raise ReportValidationError("target_id does not match the owner of this content", field="target_id")
        target_id = content.owner_id

    if target_id is None:
        if report_type in UNTARGETED_REPORT_TYPES:
            return None
        raise ReportValidationError("target_id is required for this report type", field="target_id")

    if target_id == reporter.id:
        raise ReportValidationError("You cannot file a report against yourself", field="target_id")
    if resolve_user(db, target_id) is None:
        raise ReportValidationError("Target user not found", field="target_id")
    return target_id


def _cleanup_uploads(stored: Iterable[StoredFile]) -> None:
    for item in stored:
        try:
            delete_stored_file(item.key)
        except (StorageConfigurationError, StorageDeletionError):
            logger.warning("Could not remove orphaned evidence object %s", item.key)


async def _upload_evidence(files: Sequence[UploadFile]) -> list[StoredFile]:
    folder = get_settings().storage_folder
    stored: list[StoredFile] = []
    for upload in files:
        try:
            stored.append(await store_file(upload, folder=folder))
        except (StorageConfigurationError, StorageUploadError) as exc:
            logger.warning("Evidence upload failed (%s); aborting report filing", exc)
            _cleanup_uploads(stored)
            raise UpstreamFailure() from exc
    return stored


def _evidence_type(content_type: str) -> EvidenceType:
    return EvidenceType.IMAGE if content_type.lower().startswith("image/") else EvidenceType.DOCUMENT


async def file_report(
    db: Session,
    *,
    reporter: User,
    payload: ReportFilePayload,
    files: Sequence[UploadFile] = (),
) -> ReportCreateResponse:
    """Validate, upload evidence, allocate a case number and persist a new case."""

    settings = get_settings()
    report_type = lifecycle.parse_choice(ReportType, payload.report_type, field="report_type")
    category = lifecycle.parse_choice(ReportCategory, payload.category, field="category")
    title = lifecycle.require_text(payload.title, field="title", max_length=settings.report_title_max_length)
    description = lifecycle.require_text(
        payload.description, field="description", max_length=settings.report_description_max_length
    )

    content_id = (payload.content_id or "").strip() or None
    if report_type in CONTENT_REPORT_TYPES and not content_id:
        raise ReportValidationError(f"content_id is required for {report_type.value} reports", field="content_id")
    content_kind = report_type.value if content_id and report_type in OWNED_CONTENT_REPORT_TYPES else None

    files = [upload for upload in files if upload is not None and (upload.filename or "").strip()]
    links = _validate_links(payload.evidence_links)
    if len(files) + len(links) > settings.report_max_evidence:
        raise ReportValidationError(
            f"At most {settings.report_max_evidence} evidence items are allowed", field="evidence"
        )

    target_id = _resolve_target(db, reporter, report_type, payload)

    if target_id is not None and settings.report_duplicate_window_hours > 0:
        since = utcnow() - timedelta(hours=settings.report_duplicate_window_hours)
        duplicate = case_store.find_recent_duplicate(
            db, reporter_id=reporter.id, target_id=target_id, report_type=report_type.value, since=since
        )
        if duplicate is not None:
            raise DuplicateReport(
                f"You already reported this within the last {settings.report_duplicate_window_hours} hours",
                field="target_id",
            )

    stored = await _upload_evidence(files)

    now = utcnow()
    try:
        sequence = case_store.allocate_case_sequence(db)
        report = Report(
            sequence=sequence,
            case_number=case_store.format_case_number(sequence, now),
            reporter_id=reporter.id,
            report_type=report_type.value,
            target_id=target_id,
            target_kind="user" if target_id is not None else None,
            content_id=content_id,
            content_kind=content_kind,
            category=category.value,
            title=title,
            description=description,
            status=ReportStatus.PENDING.value,
            priority=ReportPriority.MEDIUM.value,
            created_at=now,
            updated_at=now,
        )
        position = 0
        for item in stored:
            position += 1
            report.evidence.append(
                ReportEvidence(
                    position=position,
                    type=_evidence_type(item.content_type).value,
                    url=item.url,
                    storage_key=item.key,
                    filename=item.filename,
                    description="Uploaded file",
                )
            )
        for link in links:
            position += 1
            report.evidence.append(
                ReportEvidence(
                    position=position,
                    type=EvidenceType.LINK.value,
                    url=link.url,
                    description=link.description or "Provided link",
                )
            )
        db.add(report)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist report for reporter %s", reporter.id)
        _cleanup_uploads(stored)
        raise UpstreamFailure() from exc

    logger.info(
        "Report %s filed by %s (type=%s, category=%s, target=%s, content=%s)",
        report.case_number,
        reporter.id,
        report.report_type,
        report.category,
        report.target_id,
        report.content_id,
    )
    _notify_quietly(
        [reporter.id],
        NotificationType.REPORT_FILED,
        f"Your report {report.case_number} was received and is pending review.",
        report,
    )
    return ReportCreateResponse(id=report.id, case_number=report.case_number, status=report.status)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def list_mine(
    db: Session,
    *,
    user: User,
    status: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> ReportListResponse:
    """Cases filed by ``user``, reporter view, newest first."""

    safe_page, safe_limit, offset = case_store.normalize_pagination(page, limit)
    total, rows = case_store.list_reports(
        db, offset=offset, limit=safe_limit, reporter_id=user.id, status=_optional_status(status)
    )
    return ReportListResponse(
        items=_project_many(db, rows, CaseRole.REPORTER),
        total=total,
        total_pages=_total_pages(total, safe_limit),
        current_page=safe_page,
        limit=safe_limit,
    )


def list_against_me(
    db: Session,
    *,
    user: User,
    status: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> ReportListResponse:
    """Cases where ``user`` is the target, target view (reporter and evidence withheld)."""

    safe_page, safe_limit, offset = case_store.normalize_pagination(page, limit)
    total, rows = case_store.list_reports(
        db, offset=offset, limit=safe_limit, target_id=user.id, status=_optional_status(status)
    )
    return ReportListResponse(
        items=_project_many(db, rows, CaseRole.TARGET),
        total=total,
        total_pages=_total_pages(total, safe_limit),
        current_page=safe_page,
        limit=safe_limit,
    )


def get_report(db: Session, *, report_id: UUID, principal: User) -> ReportPartyView | ReportAdminView:
    """Return the caller's view of a case; unrelated callers get ``ReportNotFound``."""

    report = case_store.get_report(db, report_id)
    if report is None:
        raise ReportNotFound()
    role = resolve_role(report, principal)
    if role is CaseRole.DENIED:
        raise ReportNotFound()
    return _project(db, report, role)


def get_report_as_target(db: Session, *, report_id: UUID, principal: User) -> ReportPartyView:
    """Target-only entry point; anyone but the case's target gets ``ReportNotFound``."""

    report = case_store.get_report(db, report_id)
    if report is None or report.target_id is None or report.target_id != principal.id:
        raise ReportNotFound()
    return _project(db, report, CaseRole.TARGET)


def admin_get_report(db: Session, *, report_id: UUID, actor: User) -> ReportAdminView:
    _require_admin(actor)
    report = case_store.get_report(db, report_id)
    if report is None:
        raise ReportNotFound()
    return _project(db, report, CaseRole.ADMIN)


def admin_list_reports(db: Session, *, actor: User, filters: AdminReportFilters) -> AdminReportListResponse:
    """Admin queue: filterable, searchable, urgent work first."""

    _require_admin(actor)
    safe_page, safe_limit, offset = case_store.normalize_pagination(filters.page, filters.limit, default_limit=20)

    criteria = {
        "status": _optional_status(filters.status),
        "priority": lifecycle.parse_choice(ReportPriority, filters.priority, field="priority").value
        if filters.priority
        else None,
        "category": lifecycle.parse_choice(ReportCategory, filters.category, field="category").value
        if filters.category
        else None,
        "report_type": lifecycle.parse_choice(ReportType, filters.report_type, field="report_type").value
        if filters.report_type
        else None,
        "search": (filters.search or "").strip() or None,
    }
    total, rows = case_store.list_reports(db, offset=offset, limit=safe_limit, triage_order=True, **criteria)
    return AdminReportListResponse(
        items=_project_many(db, rows, CaseRole.ADMIN),
        total=total,
        total_pages=_total_pages(total, safe_limit),
        current_page=safe_page,
        limit=safe_limit,
    )


def _user_stats(db: Session, user: User) -> UserReportStats:
    week_ago = utcnow() - timedelta(days=7)
    return UserReportStats(
        total_reports=case_store.count_reports(db, reporter_id=user.id),
        pending_reports=case_store.count_reports(db, reporter_id=user.id, status=ReportStatus.PENDING.value),
        resolved_reports=case_store.count_reports(db, reporter_id=user.id, status=ReportStatus.RESOLVED.value),
        recent_reports=case_store.count_reports(db, reporter_id=user.id, created_since=week_ago),
        reports_against_me=case_store.count_reports(db, target_id=user.id),
        pending_reports_against_me=case_store.count_reports(
            db, target_id=user.id, status=ReportStatus.PENDING.value
        ),
        by_status=case_store.count_grouped(db, "status", reporter_id=user.id),
    )


def platform_stats(db: Session) -> PlatformReportStats:
    now = utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    by_status = case_store.count_grouped(db, "status")
    return PlatformReportStats(
        total_reports=case_store.count_reports(db),
        pending_reports=by_status.get(ReportStatus.PENDING.value, 0),
        under_review_reports=by_status.get(ReportStatus.UNDER_REVIEW.value, 0),
        escalated_reports=by_status.get(ReportStatus.ESCALATED.value, 0),
        resolved_reports=by_status.get(ReportStatus.RESOLVED.value, 0),
        dismissed_reports=by_status.get(ReportStatus.DISMISSED.value, 0),
        urgent_reports=case_store.count_reports(db, priority=ReportPriority.URGENT.value),
        today_reports=case_store.count_reports(db, created_since=start_of_day),
        weekly_reports=case_store.count_reports(db, created_since=now - timedelta(days=7)),
        by_category=case_store.count_grouped(db, "category"),
        by_type=case_store.count_grouped(db, "report_type"),
    )


def stats_overview(db: Session, *, principal: User) -> ReportStatsOverview:
    """Personal counters for everyone; admins also get platform-wide aggregates."""

    platform = platform_stats(db) if is_admin(principal) else None
    return ReportStatsOverview(mine=_user_stats(db, principal), platform=platform)


def admin_stats(db: Session, *, actor: User) -> PlatformReportStats:
    _require_admin(actor)
    return platform_stats(db)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def _mutate(db: Session, report_id: UUID, mutation: Callable[[Report], _T]) -> tuple[Report, _T]:
    """Run ``mutation`` against the row-locked case and commit it atomically."""

    report = case_store.get_report(db, report_id, for_update=True)
    if report is None:
        db.rollback()
        raise ReportNotFound()
    try:
        result = mutation(report)
        db.commit()
    except ReportError:
        db.rollback()
        raise
    except (StaleDataError, IntegrityError) as exc:
        db.rollback()
        logger.warning("Concurrent modification of report %s", report_id)
        raise ReportConflict("The report was modified by another request; please retry") from exc
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update report %s", report_id)
        raise
    return report, result


def update_status(
    db: Session,
    *,
    report_id: UUID,
    actor: User,
    status: str | None,
    note: str | None = None,
) -> ReportAdminView:
    _require_admin(actor)
    report, _ = _mutate(db, report_id, lambda case: lifecycle.set_status(case, status, actor_id=actor.id, note=note))

    if report.status in TERMINAL_STATUSES:
        event = NotificationType.REPORT_RESOLVED
        text = f"Report {report.case_number} was closed ({report.status})."
    else:
        event = NotificationType.REPORT_STATUS_CHANGED
        text = f"Report {report.case_number} is now {report.status}."
    _notify_quietly([report.reporter_id, report.target_id], event, text, report)
    return _project(db, report, CaseRole.ADMIN)


def update_priority(
    db: Session,
    *,
    report_id: UUID,
    actor: User,
    priority: str | None,
    note: str | None = None,
) -> ReportAdminView:
    _require_admin(actor)
    report, _ = _mutate(
        db, report_id, lambda case: lifecycle.set_priority(case, priority, actor_id=actor.id, note=note)
    )
    return _project(db, report, CaseRole.ADMIN)


def add_admin_note(db: Session, *, report_id: UUID, actor: User, note: str | None) -> ReportAdminView:
    _require_admin(actor)
    report, _ = _mutate(db, report_id, lambda case: lifecycle.add_note(case, note, actor_id=actor.id))
    return _project(db, report, CaseRole.ADMIN)


def resolve_report(
    db: Session,
    *,
    report_id: UUID,
    actor: User,
    action: str | None,
    details: str | None,
) -> ReportAdminView:
    _require_admin(actor)
    report, _ = _mutate(db, report_id, lambda case: lifecycle.resolve(case, action, details, actor_id=actor.id))

    outcome = ResolutionAction(report.resolution_action).value.replace("_", " ")
    _notify_quietly(
        [report.reporter_id, report.target_id],
        NotificationType.REPORT_RESOLVED,
        f"Report {report.case_number} was resolved: {outcome}.",
        report,
    )
    return _project(db, report, CaseRole.ADMIN)


def post_message(
    db: Session,
    *,
    report_id: UUID,
    actor: User,
    content: str | None,
    participant: str | None = None,
) -> ReportPartyView | ReportAdminView:
    """Append to a sub-thread and return the caller's refreshed view."""

    report, message = _mutate(
        db,
        report_id,
        lambda case: thread_service.post_message(case, content, actor=actor, participant=participant),
    )

    role = resolve_role(report, actor)
    if role is CaseRole.ADMIN:
        _notify_quietly(
            [message.participant_id],
            NotificationType.REPORT_MESSAGE,
            f"An administrator replied on report {report.case_number}.",
            report,
        )
    return _project(db, report, role)


__all__ = [
    "file_report",
    "list_mine",
    "list_against_me",
    "get_report",
    "get_report_as_target",
    "admin_get_report",
    "admin_list_reports",
    "platform_stats",
    "stats_overview",
    "admin_stats",
    "update_status",
    "update_priority",
    "add_admin_note",
    "resolve_report",
    "post_message",
]
