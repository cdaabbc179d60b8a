"""Questionnaire endpoints.

Everyone reads active questionnaires; only admins create (from JSON or an
uploaded CSV), update, delete or see inactive ones.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.models.questionnaire import (
    Question,
    QuestionnaireDefinition,
    ScoringRule,
)
from screening_core.models.records import QuestionnaireInfo
from screening_core.services import Caller, QuestionnaireService
from screening_db.models.enums import UserRole

from screening_server.config import MAX_CSV_UPLOAD_BYTES
from screening_server.dependencies import (
    get_caller,
    get_db,
    get_questionnaire_service,
    require_role,
)

router = APIRouter(prefix="/questionnaires", tags=["questionnaires"])

_admin = require_role(UserRole.ADMIN)


class UpdateQuestionnaireRequest(BaseModel):
    """Body for PUT /questionnaires/{id}; omitted fields are left unchanged."""
    name: Optional[str] = None
    full_name: Optional[str] = None
    description: Optional[str] = None
    questions: Optional[list[Question]] = None
    answer_options: Optional[list[str]] = None
    scoring_rules: Optional[list[ScoringRule]] = None
    scoring_info: Optional[str] = None
    duration: Optional[str] = None
    age_range: Optional[str] = None
    is_active: Optional[bool] = None


# ------------------------------------------------------------------
# Admin writes
# ------------------------------------------------------------------

@router.post("", status_code=201)
async def create_questionnaire(
    body: QuestionnaireDefinition,
    caller: Caller = Depends(_admin),
    db: AsyncSession = Depends(get_db),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> QuestionnaireInfo:
    """Create a questionnaire; missing answer options default to yes/no/sometimes."""
    return await service.create(db, body, created_by=caller.user_id)


@router.post("/bulk", status_code=201)
async def bulk_create_questionnaires(
    body: list[QuestionnaireDefinition],
    caller: Caller = Depends(_admin),
    db: AsyncSession = Depends(get_db),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> list[QuestionnaireInfo]:
    """Create several questionnaires atomically."""
    return await service.bulk_create(db, body, created_by=caller.user_id)


@router.post("/import-csv", status_code=201)
async def import_questionnaire_csv(
    file: UploadFile = File(...),
    name: str = Form(...),
    full_name: str = Form(...),
    description: str = Form(""),
    duration: str = Form(""),
    age_range: str = Form(""),
    is_active: bool = Form(True),
    question_column: str = Form("Question"),
    option_columns: str = Form(""),
    caller: Caller = Depends(_admin),
    db: AsyncSession = Depends(get_db),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> QuestionnaireInfo:
    """Create a questionnaire from an uploaded CSV (multipart form).

    ``option_columns`` is a comma-separated list of column names; when
    empty, options are inferred from the first question row.
    """
    data = await file.read()
    if len(data) > MAX_CSV_UPLOAD_BYTES:
        raise ValueError(f"CSV upload exceeds {MAX_CSV_UPLOAD_BYTES} bytes")
    return await service.import_csv(
        db,
        data,
        created_by=caller.user_id,
        name=name,
        full_name=full_name,
        description=description,
        duration=duration,
        age_range=age_range,
        is_active=is_active,
        question_column=question_column,
        option_columns=[c.strip() for c in option_columns.split(",") if c.strip()],
    )


@router.put("/{questionnaire_id}")
async def update_questionnaire(
    questionnaire_id: uuid.UUID,
    body: UpdateQuestionnaireRequest,
    _caller: Caller = Depends(_admin),
    db: AsyncSession = Depends(get_db),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> QuestionnaireInfo:
    return await service.update(
        db, questionnaire_id, body.model_dump(mode="json", exclude_unset=True),
    )


@router.delete("/{questionnaire_id}", status_code=204)
async def delete_questionnaire(
    questionnaire_id: uuid.UUID,
    _caller: Caller = Depends(_admin),
    db: AsyncSession = Depends(get_db),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> None:
    await service.delete(db, questionnaire_id)


# ------------------------------------------------------------------
# Reads
# ------------------------------------------------------------------

@router.get("/active")
async def list_active_questionnaires(
    _caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> list[QuestionnaireInfo]:
    return await service.list_all(db)


@router.get("/all")
async def list_all_questionnaires(
    _caller: Caller = Depends(_admin),
    db: AsyncSession = Depends(get_db),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> list[QuestionnaireInfo]:
    """Active and inactive questionnaires, newest first."""
    return await service.list_all(db, include_inactive=True)


@router.get("/{questionnaire_id}")
async def get_questionnaire(
    questionnaire_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: QuestionnaireService = Depends(get_questionnaire_service),
) -> QuestionnaireInfo:
    """Inactive questionnaires are 404 for everyone but admins."""
    return await service.get(db, questionnaire_id, include_inactive=caller.is_admin)
