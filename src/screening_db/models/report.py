"""Report ORM model — doctor-authored narrative report for a child."""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy import text as sa_text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from screening_db.models.base import Base, utcnow
from screening_db.models.enums import ReportType


class Report(Base):
    """Rendered report text plus the analysis it was built from."""

    __tablename__ = "reports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    doctor_id: Mapped[str] = mapped_column(Text, nullable=False)
    child_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("children.id", ondelete="CASCADE"),
        nullable=False,
    )
    assessment_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("assessments.id", ondelete="SET NULL"),
        nullable=True,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)
    analysis: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    # "assessment" reports carry ``analysis``; "progress" reports carry
    # ``progress`` and have no ``assessment_id``
    report_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReportType.ASSESSMENT.value,
        server_default=sa_text("'assessment'"),
    )
    progress: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow,
    )

    __table_args__ = (
        Index("ix_reports_child_created", "child_id", "created_at"),
        Index("ix_reports_doctor_created", "doctor_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Report(id={self.id!s}, child={self.child_id!s}, doctor={self.doctor_id!r})>"
