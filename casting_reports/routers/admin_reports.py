"""Administrative report triage endpoints."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import (
    AdminMessageRequest,
    AdminNoteRequest,
    AdminReportFilters,
    AdminReportListResponse,
    PlatformReportStats,
    PriorityUpdateRequest,
    ReportAdminView,
    ResolveRequest,
    StatusUpdateRequest,
)
from ..services import require_admin
from ..services import report_service

router = APIRouter(prefix="/admin/reports", tags=["admin-reports"])


@router.get("", response_model=AdminReportListResponse)
async def admin_reports_endpoint(
    status: str | None = None,
    priority: str | None = None,
    category: str | None = None,
    report_type: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_session),
    current_user: User = Depends(require_admin()),
) -> AdminReportListResponse:
    filters = AdminReportFilters(
        status=status,
        priority=priority,
        category=category,
        report_type=report_type,
        search=search,
        page=page,
        limit=limit,
    )
    return report_service.admin_list_reports(db, actor=current_user, filters=filters)


@router.get("/stats/overview", response_model=PlatformReportStats)
async def admin_report_stats_endpoint(
    db: Session = Depends(get_session),
    current_user: User = Depends(require_admin()),
) -> PlatformReportStats:
    return report_service.admin_stats(db, actor=current_user)


@router.get("/{report_id}", response_model=ReportAdminView)
async def admin_report_detail_endpoint(
    report_id: UUID,
    db: Session = Depends(get_session),
    current_user: User = Depends(require_admin()),
) -> ReportAdminView:
    return report_service.admin_get_report(db, report_id=report_id, actor=current_user)


@router.patch("/{report_id}/status", response_model=ReportAdminView)
async def admin_report_status_endpoint(
    report_id: UUID,
    payload: StatusUpdateRequest,
    db: Session = Depends(get_session),
    current_user: User = Depends(require_admin()),
) -> ReportAdminView:
    return report_service.update_status(
        db, report_id=report_id, actor=current_user, status=payload.status, note=payload.note
    )


@router.patch("/{report_id}/priority", response_model=ReportAdminView)
async def admin_report_priority_endpoint(
    report_id: UUID,
    payload: PriorityUpdateRequest,
    db: Session = Depends(get_session),
    current_user: User = Depends(require_admin()),
) -> ReportAdminView:
    return report_service.update_priority(
        db, report_id=report_id, actor=current_user, priority=payload.priority, note=payload.note
    )


@router.post("/{report_id}/notes", response_model=ReportAdminView)
async def admin_report_note_endpoint(
    report_id: UUID,
    payload: AdminNoteRequest,
    db: Session = Depends(get_session),
    current_user: User = Depends(require_admin()),
) -> ReportAdminView:
    return report_service.add_admin_note(db, report_id=report_id, actor=current_user, note=payload.note)


@router.post("/{report_id}/resolve", response_model=ReportAdminView)
async def admin_report_resolve_endpoint(
    report_id: UUID,
    payload: ResolveRequest,
    db: Session = Depends(get_session),
    current_user: User = Depends(require_admin()),
) -> ReportAdminView:
    return report_service.resolve_report(
        db, report_id=report_id, actor=current_user, action=payload.action, details=payload.details
    )


@router.post("/{report_id}/message", response_model=ReportAdminView)
async def admin_report_message_endpoint(
    report_id: UUID,
    payload: AdminMessageRequest,
    db: Session = Depends(get_session),
    current_user: User = Depends(require_admin()),
) -> ReportAdminView:
    return report_service.post_message(
        db,
        report_id=report_id,
        actor=current_user,
        content=payload.message,
        participant=payload.participant,
    )


__all__ = ["router"]
