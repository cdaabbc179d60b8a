"""AccessRequest ORM model — a doctor asking to view a child's records."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from screening_db.models.base import Base, utcnow
from screening_db.models.enums import AccessStatus


class AccessRequest(Base):
    """One row per doctor request; answered once by the owning caretaker."""

    __tablename__ = "access_requests"

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
    # Denormalised from the child so caretakers can list their inbox cheaply
    caretaker_id: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=AccessStatus.PENDING.value,
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'denied')",
            name="ck_access_status",
        ),
        # Answered requests must record when
        CheckConstraint(
            "status = 'pending' OR responded_at IS NOT NULL",
            name="ck_access_responded_at",
        ),
        Index("ix_access_doctor_child", "doctor_id", "child_id"),
        Index("ix_access_caretaker_status", "caretaker_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<AccessRequest(id={self.id!s}, doctor={self.doctor_id!r}, "
            f"child={self.child_id!s}, status={self.status!r})>"
        )
