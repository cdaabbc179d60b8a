"""FastAPI dependency injection — DB sessions, services and caller identity.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on
error; repositories only ``flush()``.
"""

import hmac
from typing import AsyncGenerator, Callable

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from screening_core.interfaces import AssessmentAnalyzer
from screening_core.services import (
    AccessService,
    AdminService,
    AssessmentService,
    Caller,
    ChildService,
    DashboardService,
    QuestionnaireService,
    ReportService,
)
from screening_db.engine import get_session_factory
from screening_db.models.enums import UserRole

from screening_server.config import ServerSettings


# ------------------------------------------------------------------
# Database session: transaction boundary lives here
# ------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session; commit on success, rollback on error."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ------------------------------------------------------------------
# Services: built once in the lifespan handler, stashed on app.state
# ------------------------------------------------------------------

def get_settings(request: Request) -> ServerSettings:
    return request.app.state.settings


def get_analyzer(request: Request) -> AssessmentAnalyzer:
    return request.app.state.analyzer


def get_child_service(request: Request) -> ChildService:
    return request.app.state.children


def get_questionnaire_service(request: Request) -> QuestionnaireService:
    return request.app.state.questionnaires


def get_assessment_service(request: Request) -> AssessmentService:
    return request.app.state.assessments


def get_access_service(request: Request) -> AccessService:
    return request.app.state.access


def get_report_service(request: Request) -> ReportService:
    return request.app.state.reports


def get_admin_service(request: Request) -> AdminService:
    return request.app.state.admin


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboard


# ------------------------------------------------------------------
# Caller identity: injected by the trusted gateway
# ------------------------------------------------------------------

async def get_caller(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_user_role: str | None = Header(None, alias="X-User-Role"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> Caller:
    """Build the :class:`Caller` from gateway headers.

    Returns 401 if ``X-User-ID`` is missing or ``X-User-Role`` is not one
    of caretaker/doctor/admin.  When ``TRUSTED_PROXY_SECRET`` is configured
    the request must also carry a matching ``X-Proxy-Secret`` (403
    otherwise), so identity headers cannot be forged by external clients.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")

    try:
        role = UserRole((x_user_role or "").strip().lower())
    except ValueError:
        raise HTTPException(status_code=401, detail="X-User-Role header is missing or invalid")

    expected_secret: str | None = request.app.state.settings.trusted_proxy_secret
    if expected_secret:
        if not x_proxy_secret:
            raise HTTPException(status_code=403, detail="X-Proxy-Secret header is required")
        if not hmac.compare_digest(x_proxy_secret, expected_secret):
            raise HTTPException(status_code=403, detail="Invalid proxy secret")

    return Caller(user_id=x_user_id, role=role)


def require_role(*roles: UserRole) -> Callable[..., Caller]:
    """Dependency factory: the caller must hold one of ``roles``."""
    allowed = frozenset(roles)

    async def _check(caller: Caller = Depends(get_caller)) -> Caller:
        if caller.role not in allowed:
            raise HTTPException(
                status_code=403,
                detail=f"Requires role: {', '.join(sorted(r.value for r in allowed))}",
            )
        return caller

    return _check
