"""Child ORM model — one row per child profile.

A child belongs to exactly one caretaker.  Doctors gain read access by
being added to ``authorized_doctors``, either when the caretaker approves
an access request or grants access directly.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, Index, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from screening_db.models.base import Base, utcnow


class Child(Base):
    """A child profile screened by its caretaker."""

    __tablename__ = "children"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Gateway-issued user id of the owning caretaker
    caretaker_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    dob: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    medical_history: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default=text("''"),
    )

    # Doctor user ids allowed to read this child's records
    authorized_doctors: Mapped[list[str]] = mapped_column(
        ARRAY(Text),
        nullable=False,
        default=list,
        server_default=text("'{}'::text[]"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    __table_args__ = (
        # GIN index so "children this doctor may see" is an index lookup
        Index("ix_children_authorized_doctors", "authorized_doctors", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<Child(id={self.id!s}, caretaker={self.caretaker_id!r}, name={self.name!r})>"
