"""Child profile endpoints.

Caretakers manage their own children; doctors list the children they are
authorized for, enriched with each child's latest assessment.
"""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.models.records import AuthorizedChildInfo, ChildInfo
from screening_core.services import Caller, ChildService
from screening_db.models.enums import Gender, UserRole

from screening_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from screening_server.dependencies import (
    get_caller,
    get_child_service,
    get_db,
    require_role,
)

router = APIRouter(prefix="/children", tags=["children"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class CreateChildRequest(BaseModel):
    """Body for POST /children."""
    name: str
    dob: date
    gender: Gender | None = None
    notes: str | None = None
    medical_history: str = ""


class UpdateChildRequest(BaseModel):
    """Body for PUT /children/{child_id}; omitted fields are left unchanged."""
    name: str | None = None
    dob: date | None = None
    gender: Gender | None = None
    notes: str | None = None
    medical_history: str | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("", status_code=201)
async def create_child(
    body: CreateChildRequest,
    caller: Caller = Depends(require_role(UserRole.CARETAKER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    service: ChildService = Depends(get_child_service),
) -> ChildInfo:
    """Create a child profile owned by the caller."""
    return await service.create(
        db,
        caller,
        name=body.name,
        dob=body.dob,
        gender=body.gender.value if body.gender else None,
        notes=body.notes,
        medical_history=body.medical_history,
    )


@router.get("/mine")
async def list_my_children(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ChildService = Depends(get_child_service),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[ChildInfo]:
    """List the caller's own children, most recent first."""
    return await service.list_mine(db, caller, limit=limit, offset=offset)


@router.get("/authorized")
async def list_authorized_children(
    caller: Caller = Depends(require_role(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db),
    service: ChildService = Depends(get_child_service),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[AuthorizedChildInfo]:
    """Children the calling doctor may read, with latest assessment and risk."""
    return await service.list_authorized(db, caller, limit=limit, offset=offset)


@router.get("/{child_id}")
async def get_child(
    child_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ChildService = Depends(get_child_service),
) -> ChildInfo:
    """Owner, admin or an authorized doctor; 403 for anyone else."""
    return await service.get(db, caller, child_id)


@router.put("/{child_id}")
async def update_child(
    child_id: uuid.UUID,
    body: UpdateChildRequest,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ChildService = Depends(get_child_service),
) -> ChildInfo:
    """Partially update a child the caller owns (404 otherwise)."""
    fields = body.model_dump(exclude_unset=True)
    if body.gender is not None:
        fields["gender"] = body.gender.value
    return await service.update(db, caller, child_id, fields)


@router.delete("/{child_id}", status_code=204)
async def delete_child(
    child_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ChildService = Depends(get_child_service),
) -> None:
    """Delete a child the caller owns, with its assessments and reports."""
    await service.delete(db, caller, child_id)


@router.get("/{child_id}/authorized-doctors")
async def list_authorized_doctors(
    child_id: uuid.UUID,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: ChildService = Depends(get_child_service),
) -> list[str]:
    """Doctor ids allowed to read this child (owner or admin only)."""
    return await service.authorized_doctors(db, caller, child_id)
