"""Report endpoints for reporters and targets."""
from __future__ import annotations

import json
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import (
    EvidenceLink,
    MessageRequest,
    ReportAdminView,
    ReportCreateResponse,
    ReportFilePayload,
    ReportListResponse,
    ReportPartyView,
    ReportStatsOverview,
)
from ..services import ReportValidationError, get_current_user
from ..services import report_service

router = APIRouter(prefix="/reports", tags=["reports"])


def _parse_evidence_links(raw: str | None) -> list[EvidenceLink]:
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ReportValidationError("evidence_links must be a JSON array", field="evidence_links") from exc
    if not isinstance(data, list):
        raise ReportValidationError("evidence_links must be a JSON array", field="evidence_links")
    try:
        return [EvidenceLink.model_validate(item) for item in data]
    except ValidationError as exc:
        raise ReportValidationError("evidence_links entries need a url", field="evidence_links") from exc


def _parse_target_id(raw: str | None) -> UUID | None:
    if raw is None or not raw.strip():
        return None
    try:
        return UUID(raw.strip())
    except ValueError as exc:
        raise ReportValidationError("target_id must be a valid identifier", field="target_id") from exc


@router.post("", response_model=ReportCreateResponse, status_code=status.HTTP_201_CREATED)
async def file_report_endpoint(
    report_type: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    target_id: Optional[str] = Form(None),
    content_id: Optional[str] = Form(None),
    evidence_links: Optional[str] = Form(None),
    evidence: list[UploadFile] | None = File(None),
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportCreateResponse:
    payload = ReportFilePayload(
        report_type=report_type,
        category=category,
        title=title,
        description=description,
        target_id=_parse_target_id(target_id),
        content_id=content_id,
        evidence_links=_parse_evidence_links(evidence_links),
    )
    return await report_service.file_report(db, reporter=current_user, payload=payload, files=evidence or [])


@router.get("/me", response_model=ReportListResponse)
async def my_reports_endpoint(
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportListResponse:
    return report_service.list_mine(db, user=current_user, status=status, page=page, limit=limit)


@router.get("/against-me", response_model=ReportListResponse)
async def reports_against_me_endpoint(
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportListResponse:
    return report_service.list_against_me(db, user=current_user, status=status, page=page, limit=limit)


@router.get("/stats/overview", response_model=ReportStatsOverview)
async def report_stats_endpoint(
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportStatsOverview:
    return report_service.stats_overview(db, principal=current_user)


@router.get("/target/{report_id}", response_model=ReportPartyView)
async def report_as_target_endpoint(
    report_id: UUID,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportPartyView:
    return report_service.get_report_as_target(db, report_id=report_id, principal=current_user)


@router.get("/{report_id}", response_model=ReportAdminView | ReportPartyView)
async def report_detail_endpoint(
    report_id: UUID,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportAdminView | ReportPartyView:
    return report_service.get_report(db, report_id=report_id, principal=current_user)


@router.post("/{report_id}/message", response_model=ReportAdminView | ReportPartyView)
async def report_message_endpoint(
    report_id: UUID,
    payload: MessageRequest,
    db: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> ReportAdminView | ReportPartyView:
    return report_service.post_message(db, report_id=report_id, actor=current_user, content=payload.message)


__all__ = ["router"]
