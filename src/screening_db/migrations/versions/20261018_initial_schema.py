"""Initial schema: children, questionnaires, assessments, access requests, reports.

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261018_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False,
                      server_default=sa.text("now()"))]
    if updated:
        cols.append(sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False,
                              server_default=sa.text("now()")))
    return cols


def upgrade() -> None:
    # --- children ---
    op.create_table(
        "children",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("caretaker_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("dob", sa.Date(), nullable=False),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("medical_history", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("authorized_doctors", ARRAY(sa.Text()), nullable=False,
                  server_default=sa.text("'{}'::text[]")),
        *_timestamps(),
    )
    op.create_index("ix_children_caretaker_id", "children", ["caretaker_id"])
    op.create_index("ix_children_authorized_doctors", "children", ["authorized_doctors"],
                    postgresql_using="gin")

    # --- questionnaires ---
    op.create_table(
        "questionnaires",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("questions", JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("answer_options", JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("scoring_rules", JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("scoring_info", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("duration", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("age_range", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_questionnaires_active", "questionnaires", ["is_active", "created_at"])
    op.create_index("ix_questionnaires_name", "questionnaires", ["name"])

    # --- assessments ---
    op.create_table(
        "assessments",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("child_id", UUID(as_uuid=True),
                  sa.ForeignKey("children.id", ondelete="CASCADE"), nullable=False),
        sa.Column("caretaker_id", sa.Text(), nullable=False),
        sa.Column("questionnaire_id", UUID(as_uuid=True),
                  sa.ForeignKey("questionnaires.id", ondelete="SET NULL"), nullable=True),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("answers", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("risk", sa.String(10), nullable=True),
        sa.Column("analysis", JSONB(), nullable=True),
        sa.Column("progress", JSONB(), nullable=True),
        sa.Column("reviewed_by_doctor", sa.Text(), nullable=True),
        sa.Column("reviewed_at", TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_assessments_child_created", "assessments", ["child_id", "created_at"])
    op.create_index("ix_assessments_risk", "assessments", ["risk"])

    # --- access_requests ---
    op.create_table(
        "access_requests",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("doctor_id", sa.Text(), nullable=False),
        sa.Column("child_id", UUID(as_uuid=True),
                  sa.ForeignKey("children.id", ondelete="CASCADE"), nullable=False),
        sa.Column("caretaker_id", sa.Text(), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("responded_at", TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.CheckConstraint("status IN ('pending', 'approved', 'denied')",
                           name="ck_access_status"),
        sa.CheckConstraint("status = 'pending' OR responded_at IS NOT NULL",
                           name="ck_access_responded_at"),
    )
    op.create_index("ix_access_doctor_child", "access_requests", ["doctor_id", "child_id"])
    op.create_index("ix_access_caretaker_status", "access_requests", ["caretaker_id", "status"])

    # --- reports ---
    op.create_table(
        "reports",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("doctor_id", sa.Text(), nullable=False),
        sa.Column("child_id", UUID(as_uuid=True),
                  sa.ForeignKey("children.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assessment_id", UUID(as_uuid=True),
                  sa.ForeignKey("assessments.id", ondelete="SET NULL"), nullable=True),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("analysis", JSONB(), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index("ix_reports_child_created", "reports", ["child_id", "created_at"])


def downgrade() -> None:
    op.drop_table("reports")
    op.drop_table("access_requests")
    op.drop_table("assessments")
    op.drop_table("questionnaires")
    op.drop_table("children")
