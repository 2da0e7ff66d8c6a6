"""Create report case tables.

Revision ID: 20261019_create_report_cases
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql as psql

# revision identifiers, used by Alembic.
revision: str = "20261019_create_report_cases"
down_revision: str | None = None
branch_labels = None
depends_on = None


def _uuid() -> psql.UUID:
    return psql.UUID(as_uuid=True)


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    # The user directory is usually owned by the account service; only create it when missing.
    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("first_name", sa.String(length=150), nullable=False, server_default=""),
            sa.Column("last_name", sa.String(length=150), nullable=False, server_default=""),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
            sa.UniqueConstraint("email", name="uq_users_email"),
        )

    op.create_table(
        "report_counters",
        sa.Column("name", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("value", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "reports",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("case_number", sa.String(length=32), nullable=False),
        sa.Column("reporter_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("report_type", sa.String(length=16), nullable=False),
        sa.Column("target_id", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("target_kind", sa.String(length=16), nullable=True),
        sa.Column("content_id", sa.String(length=64), nullable=True),
        sa.Column("content_kind", sa.String(length=16), nullable=True),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default="medium"),
        sa.Column("resolution_action", sa.String(length=32), nullable=True),
        sa.Column("resolution_details", sa.Text(), nullable=True),
        sa.Column("resolved_by", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("sequence", name="uq_reports_sequence"),
    )
    op.create_index("ix_reports_case_number", "reports", ["case_number"], unique=True)
    for column in ("reporter_id", "target_id", "content_id", "report_type", "category", "status", "priority"):
        op.create_index(f"ix_reports_{column}", "reports", [column])

    op.create_table(
        "report_evidence",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("report_id", _uuid(), sa.ForeignKey("reports.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("storage_key", sa.String(length=1024), nullable=True),
        sa.Column("filename", sa.String(length=512), nullable=True),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.UniqueConstraint("report_id", "position", name="uq_report_evidence_position"),
    )
    op.create_index("ix_report_evidence_report_id", "report_evidence", ["report_id"])

    op.create_table(
        "report_admin_notes",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("report_id", _uuid(), sa.ForeignKey("reports.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("admin_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("report_id", "position", name="uq_report_admin_notes_position"),
    )
    op.create_index("ix_report_admin_notes_report_id", "report_admin_notes", ["report_id"])

    op.create_table(
        "report_messages",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("report_id", _uuid(), sa.ForeignKey("reports.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("sender", sa.String(length=16), nullable=False),
        sa.Column("sender_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("participant_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("report_id", "position", name="uq_report_messages_position"),
    )
    op.create_index("ix_report_messages_report_id", "report_messages", ["report_id"])
    op.create_index("ix_report_messages_participant_id", "report_messages", ["participant_id"])

    if not inspector.has_table("notifications"):
        op.create_table(
            "notifications",
            sa.Column("id", _uuid(), primary_key=True, nullable=False),
            sa.Column("recipient_id", _uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("type", sa.String(length=100), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
            sa.Column("payload", psql.JSONB(), nullable=True),
        )
        op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])


def downgrade() -> None:
    op.drop_index("ix_report_messages_participant_id", table_name="report_messages")
    op.drop_index("ix_report_messages_report_id", table_name="report_messages")
    op.drop_table("report_messages")
    op.drop_index("ix_report_admin_notes_report_id", table_name="report_admin_notes")
    op.drop_table("report_admin_notes")
    op.drop_index("ix_report_evidence_report_id", table_name="report_evidence")
    op.drop_table("report_evidence")
    for column in ("reporter_id", "target_id", "content_id", "report_type", "category", "status", "priority"):
        op.drop_index(f"ix_reports_{column}", table_name="reports")
    op.drop_index("ix_reports_case_number", table_name="reports")
    op.drop_table("reports")
    op.drop_table("report_counters")
