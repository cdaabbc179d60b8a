"""Caller identity and child-level access checks shared by the services.

The gateway authenticates users; services only see a :class:`Caller`.
Role-only checks (e.g. "admins only") happen in the HTTP layer, while
checks that depend on a row (ownership, doctor authorization) live here.

Failures follow the error-mapping convention of the HTTP layer:
  - missing rows      -> ``ValueError("... not found ...")``   (404)
  - forbidden access  -> ``PermissionError``                    (403)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.models.enums import UserRole


@dataclass(frozen=True)
class Caller:
    """The authenticated user making a request."""

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_doctor(self) -> bool:
        return self.role == UserRole.DOCTOR

    @property
    def is_caretaker(self) -> bool:
        return self.role == UserRole.CARETAKER


def is_owner(child: Any, caller: Caller) -> bool:
    return child.caretaker_id == caller.user_id


def can_read_child(child: Any, caller: Caller, *, single_doctor_mode: bool = False) -> bool:
    """Owner, admin, or a doctor on the child's authorized list.

    In single-doctor deployments every doctor may read every child.
    """
    if caller.is_admin or is_owner(child, caller):
        return True
    if caller.is_doctor:
        return single_doctor_mode or caller.user_id in (child.authorized_doctors or [])
    return False


def require_read(child: Any, caller: Caller, *, single_doctor_mode: bool = False) -> None:
    if not can_read_child(child, caller, single_doctor_mode=single_doctor_mode):
        raise PermissionError(
            f"user {caller.user_id} may not read child {child.id}"
        )


def require_owner_or_admin(child: Any, caller: Caller) -> None:
    if not (caller.is_admin or is_owner(child, caller)):
        raise PermissionError(
            f"user {caller.user_id} does not own child {child.id}"
        )


async def load_child(repo: Any, db: AsyncSession, child_id: uuid.UUID) -> Any:
    """Fetch a child row or raise the not-found ``ValueError``."""
    child = await repo.get_by_id(db, child_id)
    if child is None:
        raise ValueError(f"Child not found: child_id={child_id}")
    return child
