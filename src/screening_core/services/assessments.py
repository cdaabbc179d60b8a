"""AssessmentService — submit, score, analyze and review assessments.

Submission flow::

    answers (raw JSON map)
        │  AnswerSet.decode
        ▼
    ScoringEngine.score(answers, definition | None) ──► score, risk
        │
        ▼  persist (answers verbatim, score, risk, progress)
    analyzer.analyze(context)   bounded by ``analysis_wait_seconds``
        │
        ▼  attach analysis if it arrived in time
    AssessmentInfo

Analysis is best-effort on submission: a timeout or analyzer failure is
logged and the assessment is returned without it.  A doctor can regenerate
it later with :meth:`AssessmentService.analyze`, which also stamps the
review.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from screening_db.models.enums import ProgressStatus
from screening_db.repository import (
    AssessmentRepository,
    ChildRepository,
    QuestionnaireRepository,
)

from screening_core.constants import LEGACY_QUESTIONNAIRE_TYPE
from screening_core.interfaces import AnalysisError, AssessmentAnalyzer
from screening_core.models.analysis import AnalysisContext, AssessmentAnalysis
from screening_core.models.answer import AnswerSet
from screening_core.models.questionnaire import QuestionnaireDefinition, RiskLevel
from screening_core.models.records import AssessmentInfo, AssessmentProgress
from screening_core.scoring import ScoringEngine
from screening_core.services.children import age_in_months
from screening_core.services.guards import (
    Caller,
    load_child,
    require_owner_or_admin,
    require_read,
)

logger = logging.getLogger(__name__)

DEFAULT_ANALYSIS_WAIT_SECONDS = 5.0


def build_progress(answers: AnswerSet, total_questions: int) -> AssessmentProgress:
    """Summarise how much of the questionnaire was answered.

    ``total_questions`` of 0 (legacy submissions) counts every submitted key.
    """
    completed = answers.answered_count
    total = total_questions or len(answers.values)
    if total and completed >= total:
        status = ProgressStatus.COMPLETED
    elif completed:
        status = ProgressStatus.IN_PROGRESS
    else:
        status = ProgressStatus.DRAFT
    return AssessmentProgress(
        completed_questions=completed,
        total_questions=total,
        last_answered_at=datetime.now(timezone.utc) if completed else None,
        status=status,
    )


class AssessmentService:
    """Assessment lifecycle on top of the scoring engine and an analyzer.

    Args:
        analyzer: drafts the narrative analysis
        engine: scoring engine (stateless; a default one is built if omitted)
        analysis_wait_seconds: how long submission waits for the analyzer
        single_doctor_mode: every doctor may read every child
    """

    def __init__(
        self,
        analyzer: AssessmentAnalyzer,
        engine: ScoringEngine | None = None,
        *,
        analysis_wait_seconds: float = DEFAULT_ANALYSIS_WAIT_SECONDS,
        single_doctor_mode: bool = False,
    ) -> None:
        self._analyzer = analyzer
        self._engine = engine or ScoringEngine()
        self._analysis_wait = analysis_wait_seconds
        self._single_doctor_mode = single_doctor_mode
        self._repo = AssessmentRepository()
        self._children = ChildRepository()
        self._questionnaires = QuestionnaireRepository()

    # ==================================================================
    # Submission
    # ==================================================================

    async def submit(
        self,
        db: AsyncSession,
        caller: Caller,
        *,
        child_id: uuid.UUID,
        answers: dict[str, Any],
        questionnaire_id: uuid.UUID | None = None,
    ) -> AssessmentInfo:
        """Score and store a submission, then try to attach an analysis.

        Without ``questionnaire_id`` the answers are scored with no
        definition and the assessment is typed ``MCHAT``.
        """
        child = await load_child(self._children, db, child_id)
        require_owner_or_admin(child, caller)

        definition: QuestionnaireDefinition | None = None
        assessment_type = LEGACY_QUESTIONNAIRE_TYPE
        if questionnaire_id is not None:
            q = await self._questionnaires.get_by_id(db, questionnaire_id)
            if q is None:
                raise ValueError(f"Questionnaire not found: id={questionnaire_id}")
            definition = QuestionnaireDefinition.model_validate(q, from_attributes=True)
            assessment_type = definition.name

        answer_set = AnswerSet.decode(answers)
        result = self._engine.score(answer_set, definition)
        progress = build_progress(
            answer_set, len(definition.questions) if definition else 0,
        )

        row = await self._repo.create(
            db,
            child_id=child.id,
            caretaker_id=caller.user_id,
            questionnaire_id=questionnaire_id,
            type=assessment_type,
            answers=dict(answers),
            score=result.score,
            risk=result.risk.value,
            progress=progress.model_dump(mode="json"),
        )
        logger.info(
            "Assessment submitted: id=%s child=%s type=%s score=%s risk=%s method=%s",
            row.id, child.id, assessment_type, result.score, result.risk.value,
            result.method.value,
        )

        context = AnalysisContext(
            questionnaire_type=assessment_type,
            answers=dict(answers),
            score=result.score,
            risk=result.risk,
            child_age_months=age_in_months(child.dob),
        )
        analysis = await self._analyze_within_deadline(context, row.id)
        if analysis is not None:
            row = await self._repo.save_analysis(db, row, analysis.model_dump(mode="json"))

        return AssessmentInfo.model_validate(row)

    async def _analyze_within_deadline(
        self, context: AnalysisContext, assessment_id: uuid.UUID,
    ) -> AssessmentAnalysis | None:
        try:
            return await asyncio.wait_for(
                self._analyzer.analyze(context), timeout=self._analysis_wait,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Analysis for assessment %s exceeded %.1fs; returning without it",
                assessment_id, self._analysis_wait,
            )
        except AnalysisError as exc:
            logger.warning("Analysis for assessment %s failed: %s", assessment_id, exc)
        return None

    # ==================================================================
    # Read
    # ==================================================================

    async def get(
        self, db: AsyncSession, caller: Caller, assessment_id: uuid.UUID,
    ) -> AssessmentInfo:
        row, _child = await self._load_readable(db, caller, assessment_id)
        return AssessmentInfo.model_validate(row)

    async def list_for_child(
        self,
        db: AsyncSession,
        caller: Caller,
        child_id: uuid.UUID,
        *,
        limit: int = 20,
        offset: int = 0,
    ) -> list[AssessmentInfo]:
        """A child's assessments, newest first."""
        child = await load_child(self._children, db, child_id)
        require_read(child, caller, single_doctor_mode=self._single_doctor_mode)
        rows = await self._repo.list_by_child(db, child_id, limit=limit, offset=offset)
        return [AssessmentInfo.model_validate(r) for r in rows]

    # ==================================================================
    # Delete
    # ==================================================================

    async def delete(
        self, db: AsyncSession, caller: Caller, assessment_id: uuid.UUID,
    ) -> None:
        """Only the submitting caretaker or an admin may delete."""
        row = await self._load(db, assessment_id)
        if row.caretaker_id != caller.user_id and not caller.is_admin:
            raise PermissionError(
                f"user {caller.user_id} may not delete assessment {assessment_id}"
            )
        await self._repo.delete(db, row)
        logger.info("Assessment deleted: id=%s by=%s", assessment_id, caller.user_id)

    # ==================================================================
    # Doctor review
    # ==================================================================

    async def analyze(
        self, db: AsyncSession, caller: Caller, assessment_id: uuid.UUID,
    ) -> AssessmentInfo:
        """Regenerate the analysis and mark the assessment reviewed.

        Unlike submission there is no deadline: the doctor asked for it.
        """
        if not (caller.is_doctor or caller.is_admin):
            raise PermissionError("Only doctors can request analysis")
        row, child = await self._load_readable(db, caller, assessment_id)

        context = AnalysisContext(
            questionnaire_type=row.type,
            answers=dict(row.answers or {}),
            score=row.score,
            risk=RiskLevel(row.risk) if row.risk else RiskLevel.LOW,
            child_age_months=age_in_months(child.dob),
        )
        analysis = await self._analyzer.analyze(context)
        row = await self._repo.save_analysis(
            db, row, analysis.model_dump(mode="json"), reviewed_by=caller.user_id,
        )
        logger.info(
            "Assessment reviewed: id=%s doctor=%s generated_by=%s",
            row.id, caller.user_id, analysis.generated_by,
        )
        return AssessmentInfo.model_validate(row)

    # ==================================================================
    # Internal helpers
    # ==================================================================

    async def _load(self, db: AsyncSession, assessment_id: uuid.UUID) -> Any:
        row = await self._repo.get_by_id(db, assessment_id)
        if row is None:
            raise ValueError(f"Assessment not found: id={assessment_id}")
        return row

    async def _load_readable(
        self, db: AsyncSession, caller: Caller, assessment_id: uuid.UUID,
    ) -> tuple[Any, Any]:
        row = await self._load(db, assessment_id)
        child = await load_child(self._children, db, row.child_id)
        require_read(child, caller, single_doctor_mode=self._single_doctor_mode)
        return row, child
