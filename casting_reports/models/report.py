"""SQLAlchemy ORM models for report cases and their append-only collections."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from casting_reports.database import Base
from .base import TimestampMixin, utcnow


class Report(TimestampMixin, Base):
    __tablename__ = "reports"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sequence = Column(Integer, nullable=False, unique=True)
    case_number = Column(String(32), nullable=False, unique=True, index=True)

    reporter_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # "casting" | "user" | "application" | "blog" | "news" | "system" | "other"
    report_type = Column(String(16), nullable=False, index=True)

    # The user being reported; empty for system/other reports.
    target_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    target_kind = Column(String(16), nullable=True)

    # The reported content, independent of target_id.
    content_id = Column(String(64), nullable=True, index=True)
    content_kind = Column(String(16), nullable=True)

    category = Column(String(32), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)

    status = Column(String(32), nullable=False, server_default="pending", default="pending", index=True)
    priority = Column(String(16), nullable=False, server_default="medium", default="medium", index=True)

    resolution_action = Column(String(32), nullable=True)
    resolution_details = Column(Text, nullable=True)
    resolved_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)

    reporter = relationship("User", foreign_keys=[reporter_id])
    target = relationship("User", foreign_keys=[target_id])
    resolver = relationship("User", foreign_keys=[resolved_by])

    evidence = relationship(
        "ReportEvidence",
        back_populates="report",
        order_by="ReportEvidence.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    admin_notes = relationship(
        "ReportAdminNote",
        back_populates="report",
        order_by="ReportAdminNote.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    messages = relationship(
        "ReportMessage",
        back_populates="report",
        order_by="ReportMessage.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}


class ReportEvidence(Base):
    __tablename__ = "report_evidence"
    __table_args__ = (UniqueConstraint("report_id", "position", name="uq_report_evidence_position"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    report_id = Column(UUID(as_uuid=True), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    # "file" | "image" | "document" | "link"
    type = Column(String(16), nullable=False)
    url = Column(String(2048), nullable=False)
    storage_key = Column(String(1024), nullable=True)
    filename = Column(String(512), nullable=True)
    description = Column(String(500), nullable=True)

    report = relationship("Report", back_populates="evidence")


class ReportAdminNote(Base):
    __tablename__ = "report_admin_notes"
    __table_args__ = (UniqueConstraint("report_id", "position", name="uq_report_admin_notes_position"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    report_id = Column(UUID(as_uuid=True), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    admin_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    note = Column(Text, nullable=False)
    # "status_change" | "priority_change" | "note_added" | "action_taken"
    action = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    report = relationship("Report", back_populates="admin_notes")
    admin = relationship("User")


class ReportMessage(Base):
    __tablename__ = "report_messages"
    __table_args__ = (UniqueConstraint("report_id", "position", name="uq_report_messages_position"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    report_id = Column(UUID(as_uuid=True), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    # "admin" | "user"
    sender = Column(String(16), nullable=False)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    # Non-admin party whose sub-thread this message belongs to (reporter or target).
    participant_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    report = relationship("Report", back_populates="messages")


class ReportCounter(Base):
    """Named monotonic counters; one row per counter."""

    __tablename__ = "report_counters"

    name = Column(String(64), primary_key=True)
    value = Column(Integer, nullable=False, default=0)


__all__ = ["Report", "ReportEvidence", "ReportAdminNote", "ReportMessage", "ReportCounter"]
