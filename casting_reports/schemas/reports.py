"""Schemas for report cases, their projections and admin requests."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


PartyView = Literal["reporter", "target"]
ThreadParticipant = Literal["reporter", "target"]


class UserRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    role: str | None = None


class ContentRef(BaseModel):
    id: str
    kind: str
    title: str | None = None
    excerpt: str | None = None
    slug: str | None = None
    owner_id: UUID | None = None


class EvidenceLink(BaseModel):
    url: str
    description: str | None = Field(default=None, max_length=500)


class EvidenceItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    url: str
    filename: str | None = None
    description: str | None = None


class AdminNoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    admin_id: UUID
    admin: UserRef | None = None
    note: str
    action: str | None = None
    created_at: datetime


class ReportMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender: str
    sender_id: UUID
    participant_id: UUID
    content: str
    created_at: datetime


class ResolutionResponse(BaseModel):
    action: str
    details: str
    resolved_by: UUID
    resolved_at: datetime


class ReportPartyView(BaseModel):
    """What a reporter or a target may see; never carries internal admin fields."""

    view: PartyView
    id: UUID
    case_number: str
    report_type: str
    category: str
    title: str
    description: str
    status: str
    priority: str

    reporter_id: UUID | None = None
    reporter: UserRef | None = None
    target_id: UUID | None = None
    target_kind: str | None = None
    target: UserRef | None = None
    content_id: str | None = None
    content_kind: str | None = None
    content: ContentRef | None = None

    evidence: list[EvidenceItem] | None = None
    messages: list[ReportMessageResponse] = Field(default_factory=list)
    resolution: ResolutionResponse | None = None

    created_at: datetime
    updated_at: datetime


class ReportAdminView(ReportPartyView):
    view: Literal["admin"] = "admin"
    admin_notes: list[AdminNoteResponse]
    resolver: UserRef | None = None
    age_in_days: int
    is_urgent: bool


class ReportListResponse(BaseModel):
    items: list[ReportPartyView]
    total: int
    total_pages: int
    current_page: int
    limit: int


class AdminReportListResponse(BaseModel):
    items: list[ReportAdminView]
    total: int
    total_pages: int
    current_page: int
    limit: int


class ReportFilePayload(BaseModel):
    """Filing input; field-level validation happens in the case service."""

    report_type: str | None = None
    category: str | None = None
    title: str | None = None
    description: str | None = None
    target_id: UUID | None = None
    content_id: str | None = None
    evidence_links: list[EvidenceLink] = Field(default_factory=list)


class ReportCreateResponse(BaseModel):
    id: UUID
    case_number: str
    status: str
    message: str = "Report submitted successfully."


class AdminReportFilters(BaseModel):
    status: str | None = None
    priority: str | None = None
    category: str | None = None
    report_type: str | None = None
    search: str | None = None
    page: int = 1
    limit: int = 20


class StatusUpdateRequest(BaseModel):
    status: str
    note: str | None = Field(default=None, max_length=2000)


class PriorityUpdateRequest(BaseModel):
    priority: str
    note: str | None = Field(default=None, max_length=2000)


class AdminNoteRequest(BaseModel):
    note: str | None = None


class ResolveRequest(BaseModel):
    action: str | None = None
    details: str | None = None


class MessageRequest(BaseModel):
    message: str | None = None


class AdminMessageRequest(MessageRequest):
    participant: ThreadParticipant | None = None


class UserReportStats(BaseModel):
    total_reports: int = 0
    pending_reports: int = 0
    resolved_reports: int = 0
    recent_reports: int = 0
    reports_against_me: int = 0
    pending_reports_against_me: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)


class PlatformReportStats(BaseModel):
    total_reports: int = 0
    pending_reports: int = 0
    under_review_reports: int = 0
    escalated_reports: int = 0
    resolved_reports: int = 0
    dismissed_reports: int = 0
    urgent_reports: int = 0
    today_reports: int = 0
    weekly_reports: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)


class ReportStatsOverview(BaseModel):
    mine: UserReportStats
    platform: PlatformReportStats | None = None


__all__ = [
    "PartyView",
    "ThreadParticipant",
    "UserRef",
    "ContentRef",
    "EvidenceLink",
    "EvidenceItem",
    "AdminNoteResponse",
    "ReportMessageResponse",
    "ResolutionResponse",
    "ReportPartyView",
    "ReportAdminView",
    "ReportListResponse",
    "AdminReportListResponse",
    "ReportFilePayload",
    "ReportCreateResponse",
    "AdminReportFilters",
    "StatusUpdateRequest",
    "PriorityUpdateRequest",
    "AdminNoteRequest",
    "ResolveRequest",
    "MessageRequest",
    "AdminMessageRequest",
    "UserReportStats",
    "PlatformReportStats",
    "ReportStatsOverview",
]
