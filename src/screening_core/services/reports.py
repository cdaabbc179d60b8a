"""ReportService — doctor-authored narrative reports built from an assessment.

Generating a report re-runs the analyzer through
:meth:`AssessmentService.analyze` (which stamps the review on the
assessment), renders ``report.jinja2`` and stores the text together with
the analysis it was built from.

A progress report instead compares every assessment of one child
(``screening_core.progress``), renders ``progress_report.jinja2`` and stores
the progress analysis; it is not tied to a single assessment.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.models.enums import ReportType
from screening_db.repository import AssessmentRepository, ChildRepository, ReportRepository

from screening_core.constants import MIN_PROGRESS_ATTEMPTS
from screening_core.models.analysis import ProgressAttempt
from screening_core.models.questionnaire import RiskLevel
from screening_core.models.records import ReportInfo
from screening_core.progress import analyze_progress
from screening_core.prompt.manager import PromptManager
from screening_core.services.assessments import AssessmentService
from screening_core.services.children import age_in_months
from screening_core.services.guards import Caller, load_child, require_read

logger = logging.getLogger(__name__)


class ReportService:
    """Generate, list, fetch and delete reports."""

    def __init__(
        self,
        assessments: AssessmentService,
        prompts: PromptManager | None = None,
        *,
        single_doctor_mode: bool = False,
    ) -> None:
        self._assessments = assessments
        self._prompts = prompts or PromptManager()
        self._single_doctor_mode = single_doctor_mode
        self._repo = ReportRepository()
        self._children = ChildRepository()
        self._assessment_rows = AssessmentRepository()

    async def generate(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        assessment_id: uuid.UUID,
        notes: str | None = None,
    ) -> ReportInfo:
        """Analyze ``assessment_id`` and store a rendered report for it."""
        if not caller.is_doctor:
            raise PermissionError("Only doctors can generate reports")

        assessment = await self._assessments.analyze(db, caller, assessment_id)
        child = await load_child(self._children, db, assessment.child_id)

        text = self._prompts.render_report(
            child=child,
            assessment_type=assessment.type,
            assessed_at=assessment.created_at,
            score=assessment.score,
            risk=assessment.risk.value if assessment.risk else "Unknown",
            analysis=assessment.analysis,
            age_months=age_in_months(child.dob),
            notes=notes,
        )
        row = await self._repo.create(
            db,
            doctor_id=caller.user_id,
            child_id=child.id,
            assessment_id=assessment.id,
            text=text,
            analysis=assessment.analysis.model_dump(mode="json"),
        )
        logger.info(
            "Report generated: id=%s child=%s assessment=%s doctor=%s",
            row.id, child.id, assessment.id, caller.user_id,
        )
        return ReportInfo.model_validate(row)

    async def generate_progress(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        child_id: uuid.UUID,
        notes: str | None = None,
    ) -> ReportInfo:
        """Compare every assessment of ``child_id`` and store a progress report.

        Needs at least ``MIN_PROGRESS_ATTEMPTS`` assessments; a child with
        none is reported as not found.
        """
        if not caller.is_doctor:
            raise PermissionError("Only doctors can generate reports")

        child = await load_child(self._children, db, child_id)
        require_read(child, caller, single_doctor_mode=self._single_doctor_mode)

        rows = await self._assessment_rows.history(db, child_id)
        if not rows:
            raise ValueError(f"Assessments not found for child: child_id={child_id}")
        if len(rows) < MIN_PROGRESS_ATTEMPTS:
            raise ValueError(
                f"Progress report needs {MIN_PROGRESS_ATTEMPTS} assessments, "
                f"child {child_id} has {len(rows)}"
            )

        attempts = [
            ProgressAttempt(
                assessment_id=r.id,
                questionnaire_type=r.type,
                score=r.score,
                risk=RiskLevel(r.risk) if r.risk else None,
                assessed_at=r.created_at,
            )
            for r in rows
        ]
        analysis = analyze_progress(child.name, attempts)
        text = self._prompts.render_progress_report(
            child=child,
            attempts=attempts,
            analysis=analysis,
            age_months=age_in_months(child.dob),
            notes=notes,
        )
        row = await self._repo.create(
            db,
            doctor_id=caller.user_id,
            child_id=child.id,
            assessment_id=None,
            text=text,
            report_type=ReportType.PROGRESS,
            progress=analysis.model_dump(mode="json"),
        )
        logger.info(
            "Progress report generated: id=%s child=%s attempts=%d doctor=%s",
            row.id, child.id, len(attempts), caller.user_id,
        )
        return ReportInfo.model_validate(row)

    async def list_for_child(
        self,
        db: AsyncSession,
        caller: Caller,
        child_id: uuid.UUID,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ReportInfo]:
        child = await load_child(self._children, db, child_id)
        require_read(child, caller, single_doctor_mode=self._single_doctor_mode)
        rows = await self._repo.list_by_child(db, child_id, limit=limit, offset=offset)
        return [ReportInfo.model_validate(r) for r in rows]

    async def get(self, db: AsyncSession, caller: Caller, report_id: uuid.UUID) -> ReportInfo:
        row = await self._load(db, report_id)
        child = await load_child(self._children, db, row.child_id)
        require_read(child, caller, single_doctor_mode=self._single_doctor_mode)
        return ReportInfo.model_validate(row)

    async def delete(self, db: AsyncSession, caller: Caller, report_id: uuid.UUID) -> None:
        """Only the authoring doctor or an admin may delete."""
        row = await self._load(db, report_id)
        if row.doctor_id != caller.user_id and not caller.is_admin:
            raise PermissionError(f"user {caller.user_id} may not delete report {report_id}")
        await self._repo.delete(db, row)
        logger.info("Report deleted: id=%s by=%s", report_id, caller.user_id)

    async def _load(self, db: AsyncSession, report_id: uuid.UUID) -> Any:
        row = await self._repo.get_by_id(db, report_id)
        if row is None:
            raise ValueError(f"Report not found: id={report_id}")
        return row
