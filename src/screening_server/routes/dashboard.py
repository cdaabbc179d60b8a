"""Role dashboards for caretakers and doctors."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.models.records import CaretakerDashboard, DoctorDashboard
from screening_core.services import Caller, DashboardService
from screening_db.models.enums import UserRole

from screening_server.dependencies import get_dashboard_service, get_db, require_role

router = APIRouter(tags=["dashboard"])


@router.get("/caretaker/dashboard")
async def caretaker_dashboard(
    caller: Caller = Depends(require_role(UserRole.CARETAKER)),
    db: AsyncSession = Depends(get_db),
    service: DashboardService = Depends(get_dashboard_service),
) -> CaretakerDashboard:
    """Number of children and the five newest reports about them."""
    return await service.caretaker(db, caller)


@router.get("/doctor/dashboard")
async def doctor_dashboard(
    caller: Caller = Depends(require_role(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db),
    service: DashboardService = Depends(get_dashboard_service),
) -> DoctorDashboard:
    """Number of reports written and the five newest."""
    return await service.doctor(db, caller)
