"""Aggregate router exports."""
from .admin_reports import router as admin_reports_router
from .reports import router as reports_router
from .system import router as system_router

__all__ = [
    "admin_reports_router",
    "reports_router",
    "system_router",
]
