"""SQLAlchemy ORM model for the user directory consumed by the case service."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, String
from sqlalchemy.dialects.postgresql import UUID

from casting_reports.database import Base
from .base import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(150), nullable=False, default="")
    last_name = Column(String(150), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=True)
    # "talent" | "casting_director" | "journalist" | "admin" | "owner"
    role = Column(String(32), nullable=False, server_default="user", default="user")


__all__ = ["User"]
