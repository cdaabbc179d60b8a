"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from screening_server.routes.access import router as access_router
from screening_server.routes.admin import router as admin_router
from screening_server.routes.assessments import router as assessments_router
from screening_server.routes.children import router as children_router
from screening_server.routes.dashboard import router as dashboard_router
from screening_server.routes.llm import router as llm_router
from screening_server.routes.questionnaires import router as questionnaires_router
from screening_server.routes.reports import router as reports_router
from screening_server.routes.search import router as search_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(children_router, prefix=API_PREFIX)
    app.include_router(questionnaires_router, prefix=API_PREFIX)
    app.include_router(assessments_router, prefix=API_PREFIX)
    app.include_router(access_router, prefix=API_PREFIX)
    app.include_router(reports_router, prefix=API_PREFIX)
    app.include_router(llm_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)
    app.include_router(search_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)
