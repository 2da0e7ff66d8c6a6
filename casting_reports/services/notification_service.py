"""Best-effort notification sink for case events.

Notifications are written in their own session after the case mutation has
committed; a failure here is logged and never propagates to the caller.
"""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import create_session
from ..models import Notification
from ..models.base import utcnow

logger = logging.getLogger(__name__)


class NotificationType(StrEnum):
    REPORT_FILED = "report.filed"
    REPORT_STATUS_CHANGED = "report.status_changed"
    REPORT_RESOLVED = "report.resolved"
    REPORT_MESSAGE = "report.message"


def notify(
    recipient_id: UUID | None,
    event: NotificationType | str,
    content: str,
    *,
    payload: dict[str, Any] | None = None,
    session_factory: Callable[[], Session] = create_session,
) -> bool:
    """Queue a notification for ``recipient_id``; returns ``False`` if it was dropped."""

    if recipient_id is None:
        return False

    try:
        with session_factory() as db:
            db.add(
                Notification(
                    recipient_id=recipient_id,
                    type=str(event),
                    content=content,
                    payload=payload,
                    created_at=utcnow(),
                )
            )
            db.commit()
    except SQLAlchemyError:
        logger.warning("Dropping %s notification for %s", event, recipient_id, exc_info=True)
        return False
    return True


__all__ = ["NotificationType", "notify"]
