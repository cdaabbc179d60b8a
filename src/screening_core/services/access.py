"""AccessService — doctors requesting, and caretakers granting, child access.

Request lifecycle (see ``AccessStatus``)::

    doctor ── request ──► pending ── caretaker approves ──► approved
                                   └─ caretaker denies ───► denied

Approval adds the doctor to ``Child.authorized_doctors``.  Caretakers can
also grant a doctor directly, bypassing the request, and revoke access at
any time.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.models.enums import AccessStatus
from screening_db.repository import AccessRequestRepository, ChildRepository

from screening_core.models.records import AccessRequestInfo
from screening_core.services.guards import Caller, load_child, require_owner_or_admin

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_MESSAGE = "Requesting access to review assessment and provide consultation"


class AccessService:
    """Access-request workflow and direct grant/revoke."""

    def __init__(self) -> None:
        self._repo = AccessRequestRepository()
        self._children = ChildRepository()

    # ------------------------------------------------------------------
    # Doctor side
    # ------------------------------------------------------------------

    async def request_access(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        child_id: uuid.UUID,
        message: str | None = None,
    ) -> AccessRequestInfo:
        """Open a pending request for ``child_id``.

        Raises ``ValueError`` ("already ...") if the doctor already has a
        pending or approved request for this child.
        """
        if not caller.is_doctor:
            raise PermissionError("Only doctors can request access")
        child = await load_child(self._children, db, child_id)

        existing = await self._repo.find_open(db, caller.user_id, child.id)
        if existing is not None:
            if existing.status == AccessStatus.APPROVED.value:
                raise ValueError(
                    f"Doctor {caller.user_id} already has access to child {child.id}"
                )
            raise ValueError(
                f"A pending request already exists: doctor={caller.user_id} child={child.id}"
            )

        row = await self._repo.create(
            db,
            doctor_id=caller.user_id,
            child_id=child.id,
            caretaker_id=child.caretaker_id,
            message=message or DEFAULT_REQUEST_MESSAGE,
        )
        logger.info("Access requested: id=%s doctor=%s child=%s", row.id, caller.user_id, child.id)
        return AccessRequestInfo.model_validate(row)

    async def my_requests(self, db: AsyncSession, caller: Caller) -> list[AccessRequestInfo]:
        if not caller.is_doctor:
            raise PermissionError("Only doctors can view their requests")
        rows = await self._repo.list_for(db, doctor_id=caller.user_id)
        return [AccessRequestInfo.model_validate(r) for r in rows]

    # ------------------------------------------------------------------
    # Caretaker side
    # ------------------------------------------------------------------

    async def pending(self, db: AsyncSession, caller: Caller) -> list[AccessRequestInfo]:
        """Pending requests addressed to the calling caretaker."""
        rows = await self._repo.list_for(
            db, caretaker_id=caller.user_id, status=AccessStatus.PENDING,
        )
        return [AccessRequestInfo.model_validate(r) for r in rows]

    async def respond(
        self,
        db: AsyncSession,
        caller: Caller,
        request_id: uuid.UUID,
        status: AccessStatus,
    ) -> AccessRequestInfo:
        """Approve or deny a pending request addressed to the caller."""
        if status == AccessStatus.PENDING:
            raise ValueError("Invalid status; must be approved or denied")

        row = await self._repo.get_by_id(db, request_id)
        if row is None:
            raise ValueError(f"Access request not found: id={request_id}")
        if row.caretaker_id != caller.user_id:
            raise PermissionError(
                f"user {caller.user_id} may not respond to request {request_id}"
            )
        if row.status != AccessStatus.PENDING.value:
            raise ValueError(f"Access request {request_id} has already been answered")

        row = await self._repo.respond(db, row, status)
        if status == AccessStatus.APPROVED:
            child = await load_child(self._children, db, row.child_id)
            await self._add_doctor(db, child, row.doctor_id)
        logger.info("Access request %s %s by %s", request_id, status.value, caller.user_id)
        return AccessRequestInfo.model_validate(row)

    async def grant(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        child_id: uuid.UUID,
        doctor_id: str,
    ) -> list[str]:
        """Authorize ``doctor_id`` directly; returns the new authorized list."""
        child = await load_child(self._children, db, child_id)
        require_owner_or_admin(child, caller)
        if doctor_id in (child.authorized_doctors or []):
            raise ValueError(f"Doctor {doctor_id} already has access to child {child_id}")
        child = await self._add_doctor(db, child, doctor_id)
        logger.info("Access granted: child=%s doctor=%s by=%s", child_id, doctor_id, caller.user_id)
        return list(child.authorized_doctors)

    async def revoke(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        child_id: uuid.UUID,
        doctor_id: str,
    ) -> list[str]:
        """Remove ``doctor_id`` from the authorized list (no-op if absent)."""
        child = await load_child(self._children, db, child_id)
        require_owner_or_admin(child, caller)
        remaining = [d for d in (child.authorized_doctors or []) if d != doctor_id]
        child = await self._children.set_authorized_doctors(db, child, remaining)
        logger.info("Access revoked: child=%s doctor=%s by=%s", child_id, doctor_id, caller.user_id)
        return list(child.authorized_doctors)

    # ------------------------------------------------------------------
    # Either side
    # ------------------------------------------------------------------

    async def all_requests(self, db: AsyncSession, caller: Caller) -> list[AccessRequestInfo]:
        """Doctors see requests they made; caretakers, requests they received.

        Admins see every request.
        """
        if caller.is_admin:
            rows = await self._repo.list_for(db)
        elif caller.is_doctor:
            rows = await self._repo.list_for(db, doctor_id=caller.user_id)
        else:
            rows = await self._repo.list_for(db, caretaker_id=caller.user_id)
        return [AccessRequestInfo.model_validate(r) for r in rows]

    async def count_pending(self, db: AsyncSession) -> int:
        return await self._repo.count_pending(db)

    async def _add_doctor(self, db: AsyncSession, child, doctor_id: str):
        current = list(child.authorized_doctors or [])
        if doctor_id in current:
            return child
        return await self._children.set_authorized_doctors(db, child, [*current, doctor_id])
