"""Questionnaire ORM model — administrator-authored screening instruments.

Questions, answer options and scoring rules are stored as JSONB documents
shaped exactly like ``screening_core.models.QuestionnaireDefinition`` so a
row can be validated straight into the scoring model.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Index, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from screening_db.models.base import Base, utcnow


class Questionnaire(Base):
    """One row per questionnaire definition."""

    __tablename__ = "questionnaires"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Short name, e.g. "M-CHAT-R"; also recorded as Assessment.type
    name: Mapped[str] = mapped_column(Text, nullable=False)
    full_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # [{"text": ..., "order": ...}, ...]
    questions: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb"),
    )
    # ["Yes", "No"] or ["0 Never", "1 Sometimes", ...]
    answer_options: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb"),
    )
    # [{"min_score": 0, "max_score": 2, "risk_level": "Low", ...}, ...]
    scoring_rules: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb"),
    )

    scoring_info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration: Mapped[str] = mapped_column(Text, nullable=False, default="")
    age_range: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Only active questionnaires are offered to caretakers
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true"),
    )
    created_by: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    __table_args__ = (
        Index("ix_questionnaires_active", "is_active", "created_at"),
        Index("ix_questionnaires_name", "name"),
    )

    def __repr__(self) -> str:
        return f"<Questionnaire(id={self.id!s}, name={self.name!r}, active={self.is_active})>"
