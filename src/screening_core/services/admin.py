"""AdminService — dashboard counters across every table."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.repository import (
    AccessRequestRepository,
    AssessmentRepository,
    ChildRepository,
    QuestionnaireRepository,
)

from screening_core.models.records import Overview


class AdminService:
    def __init__(self) -> None:
        self._children = ChildRepository()
        self._questionnaires = QuestionnaireRepository()
        self._assessments = AssessmentRepository()
        self._access = AccessRequestRepository()

    async def overview(self, db: AsyncSession) -> Overview:
        return Overview(
            children=await self._children.count(db),
            questionnaires=await self._questionnaires.count(db),
            assessments=await self._assessments.count(db),
            pending_access_requests=await self._access.count_pending(db),
            assessments_by_risk=await self._assessments.count_by_risk(db),
        )
