"""Admin endpoints — dashboard overview."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.models.records import Overview
from screening_core.services import AdminService, Caller
from screening_db.models.enums import UserRole

from screening_server.dependencies import get_admin_service, get_db, require_role

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/overview")
async def overview(
    _caller: Caller = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    service: AdminService = Depends(get_admin_service),
) -> Overview:
    """Counts of children, questionnaires, assessments and pending requests."""
    return await service.overview(db)
