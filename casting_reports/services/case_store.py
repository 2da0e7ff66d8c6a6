"""Persistence helpers for report cases; no business rules live here."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import case, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from ..constants import CASE_COUNTER_NAME, CASE_NUMBER_PREFIX, PRIORITY_RANK
from ..models import Report, ReportCounter

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 100

_priority_rank = case(
    {priority.value: rank for priority, rank in PRIORITY_RANK.items()},
    value=Report.priority,
    else_=0,
)


def normalize_pagination(page: int | None, limit: int | None, *, default_limit: int = 10) -> tuple[int, int, int]:
    """Return ``(page, limit, offset)`` clamped to sane bounds."""

    safe_page = max(1, int(page or 1))
    safe_limit = max(1, min(int(limit or default_limit), MAX_PAGE_LIMIT))
    return safe_page, safe_limit, (safe_page - 1) * safe_limit


def _ensure_counter(db: Session, name: str) -> None:
    exists = db.scalar(select(ReportCounter.name).where(ReportCounter.name == name))
    if exists is not None:
        return
    try:
        with db.get_bind().begin() as connection:
            connection.execute(insert(ReportCounter).values(name=name, value=0))
    except IntegrityError:
        logger.debug("Counter %s was created by a concurrent request", name)


def allocate_case_sequence(db: Session, *, name: str = CASE_COUNTER_NAME) -> int:
    """Atomically take the next value of the named counter.

    The increment is a single ``UPDATE ... SET value = value + 1`` executed in the
    caller's transaction, so concurrent filings serialise on the counter row and
    a rolled back filing never publishes its number.
    """

    _ensure_counter(db, name)
    db.execute(
        update(ReportCounter)
        .where(ReportCounter.name == name)
        .values(value=ReportCounter.value + 1)
        .execution_options(synchronize_session=False)
    )
    value = db.scalar(select(ReportCounter.value).where(ReportCounter.name == name))
    if value is None:  # pragma: no cover - row is created above
        raise RuntimeError(f"Counter {name} is missing")
    return int(value)


def format_case_number(sequence: int, created_at: datetime) -> str:
    return f"{CASE_NUMBER_PREFIX}-{created_at:%Y%m%d}-{sequence:06d}"


def get_report(db: Session, report_id: UUID, *, for_update: bool = False) -> Report | None:
    stmt = select(Report).where(Report.id == report_id)
    if for_update:
        stmt = stmt.with_for_update()
    return db.scalars(stmt).first()


def find_recent_duplicate(
    db: Session,
    *,
    reporter_id: UUID,
    target_id: UUID,
    report_type: str,
    since: datetime,
) -> Report | None:
    stmt = (
        select(Report)
        .where(
            Report.reporter_id == reporter_id,
            Report.target_id == target_id,
            Report.report_type == report_type,
            Report.created_at >= since,
        )
        .limit(1)
    )
    return db.scalars(stmt).first()


def _filtered(stmt: Select, filters: dict[str, Any]) -> Select:
    for column_name in ("reporter_id", "target_id", "status", "priority", "category", "report_type"):
        value = filters.get(column_name)
        if value is not None:
            stmt = stmt.where(getattr(Report, column_name) == value)
    created_since = filters.get("created_since")
    if created_since is not None:
        stmt = stmt.where(Report.created_at >= created_since)
    search = filters.get("search")
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Report.title).like(pattern),
                func.lower(Report.description).like(pattern),
                func.lower(Report.case_number).like(pattern),
            )
        )
    return stmt


def count_reports(db: Session, **filters: Any) -> int:
    stmt = _filtered(select(func.count(Report.id)), filters)
    return int(db.scalar(stmt) or 0)


def count_grouped(db: Session, column: str, **filters: Any) -> dict[str, int]:
    """Return ``{value: count}`` for ``column`` across reports matching ``filters``."""

    group_column = getattr(Report, column)
    stmt = _filtered(select(group_column, func.count(Report.id)), filters).group_by(group_column)
    return {str(key): int(total) for key, total in db.execute(stmt).all()}


def list_reports(
    db: Session,
    *,
    offset: int,
    limit: int,
    triage_order: bool = False,
    **filters: Any,
) -> tuple[int, list[Report]]:
    """Return ``(total, page)`` for reports matching ``filters``.

    ``triage_order`` sorts urgent work first, then newest; otherwise newest first.
    """

    total = count_reports(db, **filters)
    stmt = _filtered(select(Report), filters)
    if triage_order:
        stmt = stmt.order_by(_priority_rank.desc(), Report.created_at.desc(), Report.sequence.desc())
    else:
        stmt = stmt.order_by(Report.created_at.desc(), Report.sequence.desc())
    rows = list(db.scalars(stmt.offset(offset).limit(limit)))
    return total, rows


__all__ = [
    "MAX_PAGE_LIMIT",
    "normalize_pagination",
    "allocate_case_sequence",
    "format_case_number",
    "get_report",
    "find_recent_duplicate",
    "count_reports",
    "count_grouped",
    "list_reports",
]
