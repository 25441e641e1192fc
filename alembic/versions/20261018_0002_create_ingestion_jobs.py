"""create ingestion_jobs table

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 09:15:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "ingestion_jobs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("job_type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, comment="pending, processing, completed, failed"),
        sa.Column("processed_rows", sa.Integer(), nullable=False, server_default="0", comment="Rows validated so far"),
        sa.Column("persisted_rows", sa.Integer(), nullable=False, server_default="0", comment="Valid rows written so far"),
        sa.Column("request_payload", postgresql.JSON(astext_type=sa.Text()), nullable=True, comment="Submitted file metadata"),
        sa.Column("result_payload", postgresql.JSON(astext_type=sa.Text()), nullable=True, comment="Ingestion summary"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_ingestion_jobs"),
    )
    op.create_index("ix_ingestion_jobs_status", "ingestion_jobs", ["status"], unique=False)
    op.create_index("ix_ingestion_jobs_created_at", "ingestion_jobs", ["created_at"], unique=False)
    op.create_index("ix_ingestion_jobs_completed_at", "ingestion_jobs", ["completed_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_ingestion_jobs_completed_at", table_name="ingestion_jobs")
    op.drop_index("ix_ingestion_jobs_created_at", table_name="ingestion_jobs")
    op.drop_index("ix_ingestion_jobs_status", table_name="ingestion_jobs")
    op.drop_table("ingestion_jobs")
