"""Add progress-report columns to ``reports``.

Adds ``report_type`` ("assessment" or "progress", defaulting existing rows
to "assessment") and a nullable ``progress`` JSONB column holding the
progress analysis of a multi-assessment report.

Also adds an index on ``(doctor_id, created_at)`` for the doctor dashboard,
which counts and lists a doctor's most recent reports.

Revision ID: 20261018_progress_reports
Revises: 20261018_initial
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision = "20261018_progress_reports"
down_revision = "20261018_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- New columns ---
    op.add_column(
        "reports",
        sa.Column("report_type", sa.String(20), nullable=False,
                  server_default=sa.text("'assessment'")),
    )
    op.add_column(
        "reports",
        sa.Column("progress", JSONB(), nullable=True),
    )

    # --- Doctor dashboard: newest reports per doctor ---
    op.create_index(
        "ix_reports_doctor_created",
        "reports",
        ["doctor_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_reports_doctor_created", table_name="reports")
    op.drop_column("reports", "progress")
    op.drop_column("reports", "report_type")
