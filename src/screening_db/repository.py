"""Async CRUD repositories for the screening tables.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Repositories ``flush()`` to populate defaults but
never ``commit()``; the request-scoped session dependency does that.

Authorization and validation live in the service layer
(``screening_core.services``).  Repositories only read and write rows.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.models.access_request import AccessRequest
from screening_db.models.assessment import Assessment
from screening_db.models.child import Child
from screening_db.models.enums import AccessStatus, ReportType
from screening_db.models.questionnaire import Questionnaire
from screening_db.models.report import Report


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def _count(db: AsyncSession, model: type, *criteria: Any) -> int:
    stmt = select(func.count()).select_from(model)
    if criteria:
        stmt = stmt.where(*criteria)
    return int(await db.scalar(stmt) or 0)


class ChildRepository:
    """Async read/write operations on the ``children`` table."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        *,
        caretaker_id: str,
        name: str,
        dob: Any,
        gender: str | None = None,
        notes: str | None = None,
        medical_history: str = "",
    ) -> Child:
        """Insert a child profile and return it.

        The caller must ``await db.commit()`` to persist.
        """
        child = Child(
            caretaker_id=caretaker_id,
            name=name,
            dob=dob,
            gender=gender,
            notes=notes,
            medical_history=medical_history,
            authorized_doctors=[],
        )
        db.add(child)
        await db.flush()
        return child

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, db: AsyncSession, child_id: uuid.UUID) -> Child | None:
        return await db.get(Child, child_id)

    async def list_by_caretaker(
        self,
        db: AsyncSession,
        caretaker_id: str,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Child]:
        """List a caretaker's children, most recent first."""
        stmt = (
            select(Child)
            .where(Child.caretaker_id == caretaker_id)
            .order_by(Child.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_authorized(
        self,
        db: AsyncSession,
        doctor_id: str | None,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Child]:
        """List children a doctor may read.

        ``doctor_id=None`` lists every child (single-doctor deployments).
        """
        stmt = select(Child)
        if doctor_id is not None:
            stmt = stmt.where(Child.authorized_doctors.any(doctor_id))
        stmt = stmt.order_by(Child.created_at.desc()).limit(limit).offset(offset)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def search(
        self,
        db: AsyncSession,
        query: str,
        *,
        caretaker_id: str | None = None,
        doctor_id: str | None = None,
        limit: int = 20,
    ) -> list[Child]:
        """Case-insensitive substring match on the child's name.

        ``caretaker_id`` and ``doctor_id`` narrow the match to a caretaker's
        children or a doctor's authorized children; both ``None`` searches
        every child.  ``%`` and ``_`` in ``query`` match literally.
        """
        stmt = select(Child).where(
            Child.name.ilike(f"%{_escape_like(query)}%", escape="\\")
        )
        if caretaker_id is not None:
            stmt = stmt.where(Child.caretaker_id == caretaker_id)
        if doctor_id is not None:
            stmt = stmt.where(Child.authorized_doctors.any(doctor_id))
        stmt = stmt.order_by(Child.created_at.desc()).limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def ids_by_caretaker(self, db: AsyncSession, caretaker_id: str) -> list[uuid.UUID]:
        """Every child id owned by a caretaker (unpaginated)."""
        stmt = select(Child.id).where(Child.caretaker_id == caretaker_id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count(self, db: AsyncSession) -> int:
        return await _count(db, Child)

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    async def update(
        self, db: AsyncSession, child: Child, fields: dict[str, Any]
    ) -> Child:
        """Apply a partial update; keys must be column names."""
        for key, value in fields.items():
            setattr(child, key, value)
        child.updated_at = _now()
        await db.flush()
        return child

    async def set_authorized_doctors(
        self, db: AsyncSession, child: Child, doctor_ids: Iterable[str]
    ) -> Child:
        """Replace the authorized doctor list.

        A fresh list is assigned so SQLAlchemy detects the ARRAY mutation.
        """
        child.authorized_doctors = list(doctor_ids)
        child.updated_at = _now()
        await db.flush()
        return child

    async def delete(self, db: AsyncSession, child: Child) -> None:
        """Delete a child; assessments, requests and reports cascade."""
        await db.delete(child)
        await db.flush()


class QuestionnaireRepository:
    """Async read/write operations on the ``questionnaires`` table."""

    async def create(
        self,
        db: AsyncSession,
        *,
        created_by: str | None = None,
        **fields: Any,
    ) -> Questionnaire:
        """Insert a questionnaire built from definition fields.

        ``fields`` mirrors ``QuestionnaireDefinition.model_dump(mode="json")``.
        """
        questionnaire = Questionnaire(created_by=created_by, **fields)
        db.add(questionnaire)
        await db.flush()
        return questionnaire

    async def get_by_id(
        self, db: AsyncSession, questionnaire_id: uuid.UUID
    ) -> Questionnaire | None:
        return await db.get(Questionnaire, questionnaire_id)

    async def get_by_name(self, db: AsyncSession, name: str) -> Questionnaire | None:
        stmt = (
            select(Questionnaire)
            .where(Questionnaire.name == name)
            .order_by(Questionnaire.created_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(
        self, db: AsyncSession, *, active_only: bool = True
    ) -> list[Questionnaire]:
        """List questionnaires, newest first."""
        stmt = select(Questionnaire)
        if active_only:
            stmt = stmt.where(Questionnaire.is_active.is_(True))
        stmt = stmt.order_by(Questionnaire.created_at.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count(self, db: AsyncSession) -> int:
        return await _count(db, Questionnaire)

    async def update(
        self, db: AsyncSession, questionnaire: Questionnaire, fields: dict[str, Any]
    ) -> Questionnaire:
        for key, value in fields.items():
            setattr(questionnaire, key, value)
        questionnaire.updated_at = _now()
        await db.flush()
        return questionnaire

    async def delete(self, db: AsyncSession, questionnaire: Questionnaire) -> None:
        await db.delete(questionnaire)
        await db.flush()


class AssessmentRepository:
    """Async read/write operations on the ``assessments`` table."""

    async def create(
        self,
        db: AsyncSession,
        *,
        child_id: uuid.UUID,
        caretaker_id: str,
        questionnaire_id: uuid.UUID | None,
        type: str,
        answers: dict[str, Any],
        score: float | None,
        risk: str | None,
        progress: dict[str, Any] | None = None,
    ) -> Assessment:
        """Insert a scored assessment (analysis is attached later)."""
        assessment = Assessment(
            child_id=child_id,
            caretaker_id=caretaker_id,
            questionnaire_id=questionnaire_id,
            type=type,
            answers=answers,
            score=score,
            risk=risk,
            progress=progress,
        )
        db.add(assessment)
        await db.flush()
        return assessment

    async def get_by_id(
        self, db: AsyncSession, assessment_id: uuid.UUID
    ) -> Assessment | None:
        return await db.get(Assessment, assessment_id)

    async def list_by_child(
        self,
        db: AsyncSession,
        child_id: uuid.UUID,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Assessment]:
        """List a child's assessments, most recent first."""
        stmt = (
            select(Assessment)
            .where(Assessment.child_id == child_id)
            .order_by(Assessment.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def history(self, db: AsyncSession, child_id: uuid.UUID) -> list[Assessment]:
        """Every assessment of a child, oldest first (unpaginated)."""
        stmt = (
            select(Assessment)
            .where(Assessment.child_id == child_id)
            .order_by(Assessment.created_at.asc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def latest_by_child(
        self, db: AsyncSession, child_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, Assessment]:
        """Return the most recent assessment for each of ``child_ids``.

        Uses PostgreSQL ``DISTINCT ON`` so one round trip covers the page.
        """
        if not child_ids:
            return {}
        stmt = (
            select(Assessment)
            .where(Assessment.child_id.in_(child_ids))
            .order_by(Assessment.child_id, Assessment.created_at.desc())
            .distinct(Assessment.child_id)
        )
        result = await db.execute(stmt)
        return {row.child_id: row for row in result.scalars().all()}

    async def save_analysis(
        self,
        db: AsyncSession,
        assessment: Assessment,
        analysis: dict[str, Any],
        *,
        reviewed_by: str | None = None,
    ) -> Assessment:
        """Attach an analysis; a doctor review also stamps reviewer and time."""
        now = _now()
        assessment.analysis = analysis
        if reviewed_by is not None:
            assessment.reviewed_by_doctor = reviewed_by
            assessment.reviewed_at = now
        assessment.updated_at = now
        await db.flush()
        return assessment

    async def delete(self, db: AsyncSession, assessment: Assessment) -> None:
        await db.delete(assessment)
        await db.flush()

    async def count(self, db: AsyncSession) -> int:
        return await _count(db, Assessment)

    async def count_by_risk(self, db: AsyncSession) -> dict[str, int]:
        """Assessment counts keyed by stored risk level (unscored rows skipped)."""
        stmt = (
            select(Assessment.risk, func.count())
            .where(Assessment.risk.is_not(None))
            .group_by(Assessment.risk)
        )
        result = await db.execute(stmt)
        return {risk: int(n) for risk, n in result.all()}


class AccessRequestRepository:
    """Async read/write operations on the ``access_requests`` table."""

    async def create(
        self,
        db: AsyncSession,
        *,
        doctor_id: str,
        child_id: uuid.UUID,
        caretaker_id: str,
        message: str | None = None,
    ) -> AccessRequest:
        request = AccessRequest(
            doctor_id=doctor_id,
            child_id=child_id,
            caretaker_id=caretaker_id,
            message=message,
            status=AccessStatus.PENDING.value,
        )
        db.add(request)
        await db.flush()
        return request

    async def get_by_id(
        self, db: AsyncSession, request_id: uuid.UUID
    ) -> AccessRequest | None:
        return await db.get(AccessRequest, request_id)

    async def find_open(
        self, db: AsyncSession, doctor_id: str, child_id: uuid.UUID
    ) -> AccessRequest | None:
        """Return a pending or approved request for this doctor/child pair."""
        stmt = (
            select(AccessRequest)
            .where(
                AccessRequest.doctor_id == doctor_id,
                AccessRequest.child_id == child_id,
                or_(
                    AccessRequest.status == AccessStatus.PENDING.value,
                    AccessRequest.status == AccessStatus.APPROVED.value,
                ),
            )
            .order_by(AccessRequest.created_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for(
        self,
        db: AsyncSession,
        *,
        doctor_id: str | None = None,
        caretaker_id: str | None = None,
        status: AccessStatus | None = None,
    ) -> list[AccessRequest]:
        """List requests filtered by doctor, caretaker and/or status, newest first."""
        stmt = select(AccessRequest)
        if doctor_id is not None:
            stmt = stmt.where(AccessRequest.doctor_id == doctor_id)
        if caretaker_id is not None:
            stmt = stmt.where(AccessRequest.caretaker_id == caretaker_id)
        if status is not None:
            stmt = stmt.where(AccessRequest.status == status.value)
        stmt = stmt.order_by(AccessRequest.created_at.desc())
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def respond(
        self, db: AsyncSession, request: AccessRequest, status: AccessStatus
    ) -> AccessRequest:
        """Record the caretaker's answer.

        The CHECK constraint ``ck_access_responded_at`` requires
        ``responded_at`` once the request leaves ``pending``.
        """
        request.status = status.value
        request.responded_at = _now()
        await db.flush()
        return request

    async def count_pending(self, db: AsyncSession) -> int:
        return await _count(
            db, AccessRequest, AccessRequest.status == AccessStatus.PENDING.value
        )


class ReportRepository:
    """Async read/write operations on the ``reports`` table."""

    async def create(
        self,
        db: AsyncSession,
        *,
        doctor_id: str,
        child_id: uuid.UUID,
        assessment_id: uuid.UUID | None,
        text: str,
        analysis: dict[str, Any] | None = None,
        report_type: ReportType = ReportType.ASSESSMENT,
        progress: dict[str, Any] | None = None,
    ) -> Report:
        report = Report(
            doctor_id=doctor_id,
            child_id=child_id,
            assessment_id=assessment_id,
            text=text,
            analysis=analysis,
            report_type=report_type.value,
            progress=progress,
        )
        db.add(report)
        await db.flush()
        return report

    async def get_by_id(self, db: AsyncSession, report_id: uuid.UUID) -> Report | None:
        return await db.get(Report, report_id)

    async def list_by_child(
        self,
        db: AsyncSession,
        child_id: uuid.UUID,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Report]:
        stmt = (
            select(Report)
            .where(Report.child_id == child_id)
            .order_by(Report.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def latest_for_children(
        self, db: AsyncSession, child_ids: list[uuid.UUID], *, limit: int = 5
    ) -> list[Report]:
        """Most recent reports across several children."""
        if not child_ids:
            return []
        stmt = (
            select(Report)
            .where(Report.child_id.in_(child_ids))
            .order_by(Report.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_by_doctor(
        self, db: AsyncSession, doctor_id: str, *, limit: int = 5
    ) -> list[Report]:
        """A doctor's most recent reports."""
        stmt = (
            select(Report)
            .where(Report.doctor_id == doctor_id)
            .order_by(Report.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count_by_doctor(self, db: AsyncSession, doctor_id: str) -> int:
        return await _count(db, Report, Report.doctor_id == doctor_id)

    async def delete(self, db: AsyncSession, report: Report) -> None:
        await db.delete(report)
        await db.flush()
