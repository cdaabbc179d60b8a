"""Doctor report endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.models.records import ReportInfo
from screening_core.services import Caller, ReportService
from screening_db.models.enums import UserRole

from screening_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from screening_server.dependencies import (
    get_caller,
    get_db,
    get_report_service,
    require_role,
)

router = APIRouter(tags=["reports"])


class GenerateReportRequest(BaseModel):
    """Body for POST /reports/generate."""
    assessment_id: uuid.UUID
    notes: str | None = None


class GenerateProgressReportRequest(BaseModel):
    """Body for POST /reports/generate-progress."""
    child_id: uuid.UUID
    notes: str | None = None


@router.post("/reports/generate", status_code=201)
async def generate_report(
    body: GenerateReportRequest,
    caller: Caller = Depends(require_role(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db),
    service: ReportService = Depends(get_report_service),
) -> ReportInfo:
    """Analyze the assessment, render the report text and store it."""
    return await service.generate(
        db, caller, assessment_id=body.assessment_id, notes=body.notes,
    )


@router.post("/reports/generate-progress", status_code=201)
async def generate_progress_report(
    body: GenerateProgressReportRequest,
    caller: Caller = Depends(require_role(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db),
    service: ReportService = Depends(get_report_service),
) -> ReportInfo:
    """Compare all of the child's assessments and store a progress report.

    400 when the child has fewer than two assessments.
    """
    return await service.generate_progress(
        db, caller, child_id=body.child_id, notes=body.notes,
    )


@router.get("/children/{child_id}/reports")
async def list_child_reports(
    child_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ReportService = Depends(get_report_service),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[ReportInfo]:
    return await service.list_for_child(db, caller, child_id, limit=limit, offset=offset)


@router.get("/reports/{report_id}")
async def get_report(
    report_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ReportService = Depends(get_report_service),
) -> ReportInfo:
    return await service.get(db, caller, report_id)


@router.delete("/reports/{report_id}", status_code=204)
async def delete_report(
    report_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ReportService = Depends(get_report_service),
) -> None:
    await service.delete(db, caller, report_id)
