"""Append-only message threads attached to report cases.

Each case has two sub-threads, one per non-admin party. A message's
``participant_id`` names the party whose sub-thread it belongs to; reporter and
target never see each other's messages.
"""
from __future__ import annotations

import logging

from ..config import get_settings
from ..constants import MessageSender
from ..models import Report, ReportMessage, User
from ..models.base import utcnow
from .access_policy import CaseRole, resolve_role, sub_thread_owner
from .errors import ReportForbidden, ReportValidationError
from .lifecycle import require_text

logger = logging.getLogger(__name__)


def post_message(
    report: Report,
    content: str | None,
    *,
    actor: User,
    participant: str | None = None,
) -> ReportMessage:
    """Append a message to the actor's sub-thread (or, for admins, the selected one)."""

    role = resolve_role(report, actor)
    if role is CaseRole.DENIED:
        raise ReportForbidden("You are not allowed to post messages on this report")
    if report.target_id is None:
        raise ReportForbidden("This report has no counterpart to message")

    text = require_text(content, field="message", max_length=get_settings().report_message_max_length)

    if role is CaseRole.ADMIN:
        if participant == CaseRole.REPORTER.value:
            participant_id = report.reporter_id
        elif participant == CaseRole.TARGET.value:
            participant_id = report.target_id
        else:
            raise ReportValidationError("participant must be 'reporter' or 'target'", field="participant")
        sender = MessageSender.ADMIN
    else:
        participant_id = sub_thread_owner(report, role)
        sender = MessageSender.USER

    now = utcnow()
    message = ReportMessage(
        sender=sender.value,
        sender_id=actor.id,
        participant_id=participant_id,
        content=text,
        position=len(report.messages) + 1,
        created_at=now,
    )
    report.messages.append(message)
    report.updated_at = now

    logger.info("Report %s: %s message in %s sub-thread", report.case_number, sender.value, participant_id)
    return message


__all__ = ["post_message"]
