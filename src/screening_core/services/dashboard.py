"""Per-role landing-page summaries for caretakers and doctors."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.repository import ChildRepository, ReportRepository

from screening_core.constants import DASHBOARD_RECENT_REPORTS
from screening_core.models.records import CaretakerDashboard, DoctorDashboard, ReportInfo
from screening_core.services.guards import Caller


class DashboardService:
    def __init__(self) -> None:
        self._children = ChildRepository()
        self._reports = ReportRepository()

    async def caretaker(self, db: AsyncSession, caller: Caller) -> CaretakerDashboard:
        """Child count and the newest reports across the caretaker's children."""
        if not caller.is_caretaker:
            raise PermissionError("Only caretakers have a caretaker dashboard")
        child_ids = await self._children.ids_by_caretaker(db, caller.user_id)
        reports = await self._reports.latest_for_children(
            db, child_ids, limit=DASHBOARD_RECENT_REPORTS,
        )
        return CaretakerDashboard(
            children_count=len(child_ids),
            latest_reports=[ReportInfo.model_validate(r) for r in reports],
        )

    async def doctor(self, db: AsyncSession, caller: Caller) -> DoctorDashboard:
        """Report count and the newest reports authored by the doctor."""
        if not caller.is_doctor:
            raise PermissionError("Only doctors have a doctor dashboard")
        reports = await self._reports.list_by_doctor(
            db, caller.user_id, limit=DASHBOARD_RECENT_REPORTS,
        )
        return DoctorDashboard(
            total_reports=await self._reports.count_by_doctor(db, caller.user_id),
            recent_reports=[ReportInfo.model_validate(r) for r in reports],
        )
