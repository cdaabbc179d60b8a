"""ChildService — child profiles and the doctor's authorized patient list."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.repository import AssessmentRepository, ChildRepository

from screening_core.constants import SEARCH_RESULT_LIMIT
from screening_core.models.questionnaire import RiskLevel
from screening_core.models.records import AuthorizedChildInfo, ChildInfo, ChildSearchResult
from screening_core.services.guards import (
    Caller,
    is_owner,
    load_child,
    require_owner_or_admin,
    require_read,
)

logger = logging.getLogger(__name__)

# Columns a caretaker may change after creating the profile
_UPDATABLE_FIELDS = frozenset({"name", "dob", "gender", "notes", "medical_history"})
# NOT NULL columns; an explicit null in an update is rejected
_REQUIRED_FIELDS = frozenset({"name", "dob", "medical_history"})


def age_in_months(dob: date, today: date | None = None) -> int:
    """Whole calendar months between ``dob`` and ``today`` (never negative).

    A month counts once the day-of-month is reached, so a child born on
    Jan 31 turns one month old on Mar 1 in a non-leap year.
    """
    if today is None:
        today = date.today()
    months = (today.year - dob.year) * 12 + (today.month - dob.month)
    if today.day < dob.day:
        months -= 1
    return max(months, 0)


class ChildService:
    """Create, read, update and delete child profiles.

    Args:
        single_doctor_mode: when true, every doctor is treated as
            authorized for every child.
    """

    def __init__(self, *, single_doctor_mode: bool = False) -> None:
        self._single_doctor_mode = single_doctor_mode
        self._repo = ChildRepository()
        self._assessments = AssessmentRepository()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        name: str,
        dob: date,
        gender: str | None = None,
        notes: str | None = None,
        medical_history: str = "",
    ) -> ChildInfo:
        if not name.strip():
            raise ValueError("Child name must not be blank")
        self._check_dob(dob)

        row = await self._repo.create(
            db,
            caretaker_id=caller.user_id,
            name=name.strip(),
            dob=dob,
            gender=gender,
            notes=notes,
            medical_history=medical_history,
        )
        logger.info("Child created: id=%s caretaker=%s", row.id, caller.user_id)
        return ChildInfo.model_validate(row)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_mine(
        self, db: AsyncSession, caller: Caller, *, limit: int = 20, offset: int = 0,
    ) -> list[ChildInfo]:
        rows = await self._repo.list_by_caretaker(
            db, caller.user_id, limit=limit, offset=offset,
        )
        return [ChildInfo.model_validate(r) for r in rows]

    async def list_authorized(
        self, db: AsyncSession, caller: Caller, *, limit: int = 20, offset: int = 0,
    ) -> list[AuthorizedChildInfo]:
        """Children the calling doctor may read, with their latest result.

        ``status`` is ``completed`` when the child has any assessment.
        """
        if not caller.is_doctor:
            raise PermissionError("Only doctors have an authorized patient list")

        doctor_filter = None if self._single_doctor_mode else caller.user_id
        rows = await self._repo.list_authorized(
            db, doctor_filter, limit=limit, offset=offset,
        )
        latest = await self._assessments.latest_by_child(db, [r.id for r in rows])

        enriched: list[AuthorizedChildInfo] = []
        for row in rows:
            info = AuthorizedChildInfo.model_validate(row)
            last = latest.get(row.id)
            if last is not None:
                info.last_assessment_at = last.created_at
                info.risk_level = RiskLevel(last.risk) if last.risk else None
                info.status = "completed"
            enriched.append(info)
        return enriched

    async def get(self, db: AsyncSession, caller: Caller, child_id: uuid.UUID) -> ChildInfo:
        row = await load_child(self._repo, db, child_id)
        require_read(row, caller, single_doctor_mode=self._single_doctor_mode)
        return ChildInfo.model_validate(row)

    async def search(
        self,
        db: AsyncSession,
        caller: Caller,
        query: str,
        *,
        limit: int = SEARCH_RESULT_LIMIT,
    ) -> list[ChildSearchResult]:
        """Case-insensitive name search over the children the caller may read.

        Caretakers search their own children, doctors their authorized
        patients (every child in single-doctor mode), admins everyone.
        An empty query matches every readable child.
        """
        scope: dict[str, str] = {}
        if caller.is_doctor and not self._single_doctor_mode:
            scope["doctor_id"] = caller.user_id
        elif not caller.is_admin and not caller.is_doctor:
            scope["caretaker_id"] = caller.user_id

        rows = await self._repo.search(db, query.strip(), limit=limit, **scope)
        return [ChildSearchResult.model_validate(r) for r in rows]

    async def authorized_doctors(
        self, db: AsyncSession, caller: Caller, child_id: uuid.UUID,
    ) -> list[str]:
        row = await load_child(self._repo, db, child_id)
        require_owner_or_admin(row, caller)
        return list(row.authorized_doctors or [])

    # ------------------------------------------------------------------
    # Update / delete (owner only; other callers see "not found")
    # ------------------------------------------------------------------

    async def update(
        self,
        db: AsyncSession,
        caller: Caller,
        child_id: uuid.UUID,
        fields: dict[str, Any],
    ) -> ChildInfo:
        """Apply a partial update.  Unknown keys are rejected."""
        row = await self._load_owned(db, caller, child_id)
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        fields = dict(fields)
        for key in _REQUIRED_FIELDS & set(fields):
            if fields[key] is None:
                raise ValueError(f"Child {key} cannot be cleared")
        if "name" in fields:
            if not isinstance(fields["name"], str) or not fields["name"].strip():
                raise ValueError("Child name must not be blank")
            fields["name"] = fields["name"].strip()
        if "dob" in fields:
            self._check_dob(fields["dob"])

        row = await self._repo.update(db, row, fields)
        return ChildInfo.model_validate(row)

    async def delete(self, db: AsyncSession, caller: Caller, child_id: uuid.UUID) -> None:
        row = await self._load_owned(db, caller, child_id)
        await self._repo.delete(db, row)
        logger.info("Child deleted: id=%s caretaker=%s", child_id, caller.user_id)

    @staticmethod
    def _check_dob(dob: Any) -> None:
        if not isinstance(dob, date):
            raise ValueError(f"Date of birth must be a date: {dob!r}")
        if dob > date.today():
            raise ValueError(f"Date of birth is in the future: {dob.isoformat()}")

    async def _load_owned(self, db: AsyncSession, caller: Caller, child_id: uuid.UUID) -> Any:
        row = await load_child(self._repo, db, child_id)
        if not is_owner(row, caller):
            raise ValueError(f"Child not found: child_id={child_id}")
        return row
