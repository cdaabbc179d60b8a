"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that builds the analyzer and services once
  - CORS middleware
  - Global exception handlers (ValueError → 409/404/400, PermissionError → 403)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for liveness checks

The ``cli()`` function is the ``screening-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from screening_core.analysis import build_analyzer
from screening_core.prompt import PromptManager
from screening_core.scoring import ScoringEngine
from screening_core.services import (
    AccessService,
    AdminService,
    AssessmentService,
    ChildService,
    DashboardService,
    QuestionnaireService,
    ReportService,
)
from screening_db.engine import dispose_engine, get_engine

from screening_server.config import ServerSettings, load_settings
from screening_server.errors import (
    generic_error_handler,
    key_error_handler,
    permission_error_handler,
    value_error_handler,
)
from screening_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Service wiring
# ------------------------------------------------------------------

def install_services(app: FastAPI, settings: ServerSettings) -> None:
    """Build the analyzer and every service, and stash them on ``app.state``."""
    analyzer = build_analyzer(
        api_url=settings.llm_api_url,
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        timeout=settings.llm_timeout_seconds,
    )
    assessments = AssessmentService(
        analyzer,
        ScoringEngine(),
        analysis_wait_seconds=settings.analysis_wait_seconds,
        single_doctor_mode=settings.single_doctor_mode,
    )

    app.state.analyzer = analyzer
    app.state.children = ChildService(single_doctor_mode=settings.single_doctor_mode)
    app.state.questionnaires = QuestionnaireService()
    app.state.assessments = assessments
    app.state.access = AccessService()
    app.state.reports = ReportService(
        assessments, PromptManager(), single_doctor_mode=settings.single_doctor_mode,
    )
    app.state.admin = AdminService()
    app.state.dashboard = DashboardService()


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Wire services at startup; dispose the DB pool on shutdown."""
    settings: ServerSettings = app.state.settings
    install_services(app, settings)
    logger.info(
        "Services ready (single_doctor_mode=%s, analysis_wait=%.1fs, llm=%s)",
        settings.single_doctor_mode,
        settings.analysis_wait_seconds,
        settings.llm_enabled,
    )

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Screening API Server",
        description="REST API for developmental screening questionnaires and assessments",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(PermissionError, permission_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness check: verifies DB connectivity."""
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn screening_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``screening-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "screening_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
