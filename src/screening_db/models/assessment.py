"""Assessment ORM model — one scored questionnaire submission.

Answers are kept verbatim as submitted (JSONB) next to the score and risk
computed at submission time.  A re-submission creates a new row; rows are
never re-scored in place.
"""

import uuid
from datetime import datetime

from sqlalchemy import Float, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from screening_db.models.base import Base, utcnow


class Assessment(Base):
    """A caretaker's questionnaire submission for one child."""

    __tablename__ = "assessments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    child_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("children.id", ondelete="CASCADE"),
        nullable=False,
    )
    caretaker_id: Mapped[str] = mapped_column(Text, nullable=False)
    # Null for legacy submissions scored without a questionnaire definition
    questionnaire_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("questionnaires.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Questionnaire name at submission time (survives questionnaire deletion)
    type: Mapped[str] = mapped_column(Text, nullable=False, default="MCHAT")

    # Raw {question_key: value} map exactly as submitted
    answers: Mapped[dict] = mapped_column(
        JSONB, nullable=False, server_default=text("'{}'::jsonb"),
    )
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    risk: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # {"summary", "key_findings", "recommendations", "generated_by", "generated_at"}
    analysis: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    # {"completed_questions", "total_questions", "last_answered_at", "status"}
    progress: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    reviewed_by_doctor: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    __table_args__ = (
        # Latest-first listing per child
        Index("ix_assessments_child_created", "child_id", "created_at"),
        Index("ix_assessments_risk", "risk"),
    )

    def __repr__(self) -> str:
        return (
            f"<Assessment(id={self.id!s}, child={self.child_id!s}, "
            f"type={self.type!r}, score={self.score}, risk={self.risk!r})>"
        )
