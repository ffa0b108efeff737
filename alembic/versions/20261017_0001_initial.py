"""Create daily report and processing queue tables."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "daily_reports",
        sa.Column("job_id", sa.String(), primary_key=True),
        sa.Column("tenant", sa.String(), nullable=False),
        sa.Column("project", sa.String(), nullable=False),
        sa.Column("subcontractor", sa.String(), nullable=False),
        sa.Column("locator", sa.String(), nullable=False),
        sa.Column("original_filename", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("extracted_data", sa.Text(), nullable=True),
        sa.Column("error_summary", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_daily_reports_tenant", "daily_reports", ["tenant"])
    op.create_index("ix_daily_reports_project", "daily_reports", ["project"])
    op.create_index("ix_daily_reports_status", "daily_reports", ["status"])

    op.create_table(
        "queue_messages",
        sa.Column("message_id", sa.String(), primary_key=True),
        sa.Column("queue_name", sa.String(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("receipt_handle", sa.String(), nullable=True),
        sa.Column("receive_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("visible_after", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_queue_messages_queue_visible",
        "queue_messages",
        ["queue_name", "visible_after"],
    )
    op.create_index("ix_queue_messages_receipt_handle", "queue_messages", ["receipt_handle"])


def downgrade() -> None:
    op.drop_index("ix_queue_messages_receipt_handle", table_name="queue_messages")
    op.drop_index("idx_queue_messages_queue_visible", table_name="queue_messages")
    op.drop_table("queue_messages")
    op.drop_index("ix_daily_reports_status", table_name="daily_reports")
    op.drop_index("ix_daily_reports_project", table_name="daily_reports")
    op.drop_index("ix_daily_reports_tenant", table_name="daily_reports")
    op.drop_table("daily_reports")
