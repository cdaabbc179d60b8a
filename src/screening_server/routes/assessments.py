"""Assessment endpoints — submit, read, delete and doctor review.

Submission scores the answers synchronously and waits up to
``ANALYSIS_WAIT_SECONDS`` for the narrative analysis; if it does not
arrive in time the assessment is returned without it.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.models.records import AssessmentInfo
from screening_core.services import AssessmentService, Caller
from screening_db.models.enums import UserRole

from screening_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from screening_server.dependencies import (
    get_assessment_service,
    get_caller,
    get_db,
    require_role,
)

router = APIRouter(tags=["assessments"])


class SubmitAssessmentRequest(BaseModel):
    """Body for POST /assessments.

    ``answers`` maps question keys to raw values: labels ("Yes", "2 Often"),
    numbers, numeric strings or null.  Omit ``questionnaire_id`` for legacy
    clients scored without a questionnaire.
    """
    child_id: uuid.UUID
    questionnaire_id: uuid.UUID | None = None
    answers: dict[str, Any] = Field(default_factory=dict)


@router.post("/assessments", status_code=201)
async def submit_assessment(
    body: SubmitAssessmentRequest,
    caller: Caller = Depends(require_role(UserRole.CARETAKER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> AssessmentInfo:
    return await service.submit(
        db,
        caller,
        child_id=body.child_id,
        questionnaire_id=body.questionnaire_id,
        answers=body.answers,
    )


@router.get("/assessments/{assessment_id}")
async def get_assessment(
    assessment_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> AssessmentInfo:
    return await service.get(db, caller, assessment_id)


@router.get("/children/{child_id}/assessments")
async def list_child_assessments(
    child_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[AssessmentInfo]:
    """A child's assessments, newest first."""
    return await service.list_for_child(db, caller, child_id, limit=limit, offset=offset)


@router.delete("/assessments/{assessment_id}", status_code=204)
async def delete_assessment(
    assessment_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> None:
    """Only the submitting caretaker or an admin may delete."""
    await service.delete(db, caller, assessment_id)


@router.post("/assessments/{assessment_id}/analyze")
async def analyze_assessment(
    assessment_id: uuid.UUID,
    caller: Caller = Depends(require_role(UserRole.DOCTOR, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    service: AssessmentService = Depends(get_assessment_service),
) -> AssessmentInfo:
    """Regenerate the analysis and stamp the doctor's review."""
    return await service.analyze(db, caller, assessment_id)
