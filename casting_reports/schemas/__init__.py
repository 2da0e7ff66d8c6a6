"""Convenience exports for schema layer."""
from .reports import (
    AdminMessageRequest,
    AdminNoteRequest,
    AdminNoteResponse,
    AdminReportFilters,
    AdminReportListResponse,
    ContentRef,
    EvidenceItem,
    EvidenceLink,
    MessageRequest,
    PlatformReportStats,
    PriorityUpdateRequest,
    ReportAdminView,
    ReportCreateResponse,
    ReportFilePayload,
    ReportListResponse,
    ReportMessageResponse,
    ReportPartyView,
    ReportStatsOverview,
    ResolutionResponse,
    ResolveRequest,
    StatusUpdateRequest,
    UserRef,
    UserReportStats,
)

__all__ = [
    "AdminMessageRequest",
    "AdminNoteRequest",
    "AdminNoteResponse",
    "AdminReportFilters",
    "AdminReportListResponse",
    "ContentRef",
    "EvidenceItem",
    "EvidenceLink",
    "MessageRequest",
    "PlatformReportStats",
    "PriorityUpdateRequest",
    "ReportAdminView",
    "ReportCreateResponse",
    "ReportFilePayload",
    "ReportListResponse",
    "ReportMessageResponse",
    "ReportPartyView",
    "ReportStatsOverview",
    "ResolutionResponse",
    "ResolveRequest",
    "StatusUpdateRequest",
    "UserRef",
    "UserReportStats",
]
