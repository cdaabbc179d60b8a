"""Access-request endpoints.

Doctors request access to a child; the owning caretaker approves or
denies.  Caretakers can also grant or revoke a doctor directly.
"""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.models.records import AccessRequestInfo
from screening_core.services import AccessService, Caller
from screening_db.models.enums import AccessStatus, UserRole

from screening_server.dependencies import (
    get_access_service,
    get_caller,
    get_db,
    require_role,
)

router = APIRouter(prefix="/access", tags=["access"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class AccessRequestBody(BaseModel):
    child_id: uuid.UUID
    message: str | None = None


class RespondBody(BaseModel):
    status: Literal["approved", "denied"]


class DoctorAccessBody(BaseModel):
    """Body for POST /access/grant and /access/revoke."""
    child_id: uuid.UUID
    doctor_id: str


class AuthorizedDoctors(BaseModel):
    child_id: uuid.UUID
    authorized_doctors: list[str]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/request", status_code=201)
async def request_access(
    body: AccessRequestBody,
    caller: Caller = Depends(require_role(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db),
    service: AccessService = Depends(get_access_service),
) -> AccessRequestInfo:
    """Returns 409 if a pending or approved request already exists."""
    return await service.request_access(
        db, caller, child_id=body.child_id, message=body.message,
    )


@router.get("/pending")
async def pending_requests(
    caller: Caller = Depends(require_role(UserRole.CARETAKER)),
    db: AsyncSession = Depends(get_db),
    service: AccessService = Depends(get_access_service),
) -> list[AccessRequestInfo]:
    return await service.pending(db, caller)


@router.put("/{request_id}/respond")
async def respond_to_request(
    request_id: uuid.UUID,
    body: RespondBody,
    caller: Caller = Depends(require_role(UserRole.CARETAKER)),
    db: AsyncSession = Depends(get_db),
    service: AccessService = Depends(get_access_service),
) -> AccessRequestInfo:
    """Approve or deny; approval adds the doctor to the child's authorized list."""
    return await service.respond(db, caller, request_id, AccessStatus(body.status))


@router.get("/my-requests")
async def my_requests(
    caller: Caller = Depends(require_role(UserRole.DOCTOR)),
    db: AsyncSession = Depends(get_db),
    service: AccessService = Depends(get_access_service),
) -> list[AccessRequestInfo]:
    return await service.my_requests(db, caller)


@router.get("/all")
async def all_requests(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    service: AccessService = Depends(get_access_service),
) -> list[AccessRequestInfo]:
    """Requests made (doctor), received (caretaker) or every request (admin)."""
    return await service.all_requests(db, caller)


@router.post("/grant")
async def grant_access(
    body: DoctorAccessBody,
    caller: Caller = Depends(require_role(UserRole.CARETAKER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    service: AccessService = Depends(get_access_service),
) -> AuthorizedDoctors:
    """Authorize a doctor directly; 409 if already authorized."""
    doctors = await service.grant(
        db, caller, child_id=body.child_id, doctor_id=body.doctor_id,
    )
    return AuthorizedDoctors(child_id=body.child_id, authorized_doctors=doctors)


@router.post("/revoke")
async def revoke_access(
    body: DoctorAccessBody,
    caller: Caller = Depends(require_role(UserRole.CARETAKER, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    service: AccessService = Depends(get_access_service),
) -> AuthorizedDoctors:
    doctors = await service.revoke(
        db, caller, child_id=body.child_id, doctor_id=body.doctor_id,
    )
    return AuthorizedDoctors(child_id=body.child_id, authorized_doctors=doctors)
