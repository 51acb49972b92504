"""Create import tracking, verification and usage tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16 00:00:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JOB_STATUSES = ("PENDING", "RUNNING", "PAUSED", "COMPLETED", "FAILED", "CANCELLED")
RECORD_STATUSES = (
    "PENDING",
    "PROCESSING",
    "GEOCODING",
    "VERIFYING",
    "APPROVED",
    "FLAGGED",
    "REJECTED",
    "ERROR",
    "SKIPPED",
)
VERIFICATION_LEVELS = ("L1", "L2", "L3")
VERIFICATION_TYPES = ("INITIAL", "PERIODIC", "TRIGGERED")
DECISIONS = ("AUTO_APPROVE", "FLAG_FOR_HUMAN", "AUTO_REJECT")
SUGGESTION_STATUSES = ("PENDING", "REJECTED")


def _timestamp(name: str, *, nullable: bool = False) -> sa.Column[object]:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "import_job",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_name", sa.String(), nullable=False),
        sa.Column("source_url", sa.String(), nullable=True),
        sa.Column("source_description", sa.Text(), nullable=True),
        sa.Column(
            "status", sa.Enum(*JOB_STATUSES, name="jobstatus", native_enum=False), nullable=False
        ),
        sa.Column("total_records", sa.Integer(), nullable=False),
        sa.Column("processed_records", sa.Integer(), nullable=False),
        sa.Column("successful_records", sa.Integer(), nullable=False),
        sa.Column("failed_records", sa.Integer(), nullable=False),
        sa.Column("flagged_records", sa.Integer(), nullable=False),
        sa.Column("rejected_records", sa.Integer(), nullable=False),
        sa.Column("skipped_records", sa.Integer(), nullable=False),
        sa.Column("checkpoint", sa.Text(), nullable=True),
        sa.Column("error_log", sa.Text(), nullable=False),
        sa.Column("settings", sa.Text(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("started_at", nullable=True),
        _timestamp("completed_at", nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_import_job"),
    )
    op.create_index("ix_import_job_status", "import_job", ["status"])

    op.create_table(
        "import_record",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("job_id", sa.Uuid(), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("record_index", sa.Integer(), nullable=True),
        sa.Column("source_url", sa.String(), nullable=True),
        sa.Column("raw_data", sa.Text(), nullable=False),
        sa.Column("normalized_data", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*RECORD_STATUSES, name="recordstatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("resource_id", sa.String(), nullable=True),
        sa.Column("suggestion_id", sa.String(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("error_details", sa.Text(), nullable=True),
        sa.Column("verification_score", sa.Float(), nullable=True),
        sa.Column(
            "verification_level",
            sa.Enum(*VERIFICATION_LEVELS, name="verificationlevel", native_enum=False),
            nullable=True,
        ),
        sa.Column("verification_decision", sa.String(), nullable=True),
        sa.Column("verification_reason", sa.Text(), nullable=True),
        sa.Column("processing_time_ms", sa.Integer(), nullable=True),
        sa.Column("geocoding_time_ms", sa.Integer(), nullable=True),
        sa.Column("geocoding_attempted", sa.Boolean(), nullable=False),
        sa.Column("geocoding_success", sa.Boolean(), nullable=True),
        sa.Column("original_address", sa.Text(), nullable=True),
        sa.Column("geocoded_address", sa.Text(), nullable=True),
        sa.Column("geocoding_confidence", sa.String(), nullable=True),
        _timestamp("created_at"),
        _timestamp("processed_at", nullable=True),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(
            ["job_id"], ["import_job.id"], name="fk_import_record_job_id_import_job"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_import_record"),
    )
    op.create_index("ix_import_record_job_id", "import_record", ["job_id"])
    op.create_index("ix_import_record_job_status", "import_record", ["job_id", "status"])

    op.create_table(
        "published_resource",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_name", sa.String(), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("resource", sa.Text(), nullable=False),
        sa.Column("verification_score", sa.Float(), nullable=False),
        sa.Column("submitter", sa.String(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_published_resource"),
        sa.UniqueConstraint(
            "source_name", "source_id", name="uq_published_resource_source_key"
        ),
    )

    op.create_table(
        "resource_suggestion",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("source_name", sa.String(), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("resource", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*SUGGESTION_STATUSES, name="suggestionstatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("verification_score", sa.Float(), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=False),
        sa.Column("submitter", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_resource_suggestion"),
        sa.UniqueConstraint(
            "source_name", "source_id", name="uq_resource_suggestion_source_key"
        ),
    )

    op.create_table(
        "verification_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("candidate_key", sa.String(), nullable=False),
        sa.Column(
            "verification_type",
            sa.Enum(*VERIFICATION_TYPES, name="verificationtype", native_enum=False),
            nullable=False,
        ),
        sa.Column("result", sa.Text(), nullable=False),
        sa.Column(
            "decision", sa.Enum(*DECISIONS, name="decision", native_enum=False), nullable=False
        ),
        sa.Column("overall_score", sa.Float(), nullable=False),
        sa.Column("cost_usd", sa.Float(), nullable=False),
        sa.Column("resource_id", sa.Uuid(), nullable=True),
        sa.Column("suggestion_id", sa.Uuid(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_verification_log"),
    )
    op.create_index("ix_verification_log_candidate_key", "verification_log", ["candidate_key"])

    op.create_table(
        "usage_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("operation_type", sa.String(), nullable=False),
        sa.Column("provider", sa.String(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("input_tokens", sa.Integer(), nullable=False),
        sa.Column("output_tokens", sa.Integer(), nullable=False),
        sa.Column("input_cost_usd", sa.Float(), nullable=False),
        sa.Column("output_cost_usd", sa.Float(), nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=False),
        sa.Column("candidate_key", sa.String(), nullable=True),
        sa.Column("context", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id", name="pk_usage_log"),
    )
    op.create_index("ix_usage_log_created_at", "usage_log", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_usage_log_created_at", table_name="usage_log")
    op.drop_table("usage_log")
    op.drop_index("ix_verification_log_candidate_key", table_name="verification_log")
    op.drop_table("verification_log")
    op.drop_table("resource_suggestion")
    op.drop_table("published_resource")
    op.drop_index("ix_import_record_job_status", table_name="import_record")
    op.drop_index("ix_import_record_job_id", table_name="import_record")
    op.drop_table("import_record")
    op.drop_index("ix_import_job_status", table_name="import_job")
    op.drop_table("import_job")
