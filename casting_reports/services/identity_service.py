"""Identity lookups used to decorate case responses with display data."""
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User
from ..schemas import UserRef
from .errors import UpstreamFailure

logger = logging.getLogger(__name__)


def resolve_user(db: Session, user_id: UUID) -> UserRef | None:
    """Return display data for ``user_id`` or ``None`` when the user is unknown."""

    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Identity lookup failed for %s", user_id)
        raise UpstreamFailure() from exc
    return UserRef.model_validate(user) if user is not None else None


def resolve_users(db: Session, user_ids: Iterable[UUID]) -> dict[UUID, UserRef]:
    """Batch variant of :func:`resolve_user`; unknown ids are omitted."""

    wanted = {user_id for user_id in user_ids if user_id is not None}
    if not wanted:
        return {}
    try:
        users = db.scalars(select(User).where(User.id.in_(wanted))).all()
    except SQLAlchemyError as exc:
        logger.exception("Identity batch lookup failed")
        raise UpstreamFailure() from exc
    return {user.id: UserRef.model_validate(user) for user in users}


__all__ = ["resolve_user", "resolve_users"]
