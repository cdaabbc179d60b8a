"""PromptManager — Jinja2-based renderer for LLM prompts and report text.

Loads templates from the ``template/`` directory:

  - ``assessment_analysis.jinja2``: user prompt sent to the LLM analyzer,
    ending with the JSON response format it must follow
  - ``report.jinja2``: plain-text narrative report stored with a Report
  - ``progress_report.jinja2``: plain-text report comparing a child's
    assessments over time
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

import jinja2

from screening_core.models.analysis import (
    AnalysisContext,
    AssessmentAnalysis,
    ProgressAnalysis,
    ProgressAttempt,
)

ANALYSIS_TEMPLATE = "assessment_analysis.jinja2"
REPORT_TEMPLATE = "report.jinja2"
PROGRESS_REPORT_TEMPLATE = "progress_report.jinja2"


class PromptManager:
    """Jinja2 renderer for analysis prompts and doctor reports.

    Args:
        template_dir: optional override for the template directory.
            Defaults to ``template/`` sibling of this module.
    """

    def __init__(self, template_dir: Path | None = None) -> None:
        if template_dir is None:
            template_dir = Path(__file__).parent / "template"
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )

    def render(self, template_name: str, **context: Any) -> str:
        """Render a named template with arbitrary context."""
        template = self._env.get_template(template_name)
        return template.render(**context)

    def render_analysis_prompt(self, context: AnalysisContext) -> str:
        """Render the LLM user prompt for one assessment."""
        return self.render(ANALYSIS_TEMPLATE, context=context)

    def render_report(
        self,
        *,
        child: Any,
        assessment_type: str,
        assessed_at: datetime,
        score: int | float | None,
        risk: str,
        analysis: AssessmentAnalysis,
        age_months: int | None = None,
        notes: str | None = None,
    ) -> str:
        """Render the narrative report text.

        ``child`` is any object exposing ``name``, ``gender`` and ``dob``
        (an ORM row or a :class:`ChildInfo`).
        """
        return self.render(
            REPORT_TEMPLATE,
            child=child,
            assessment_type=assessment_type,
            assessed_at=assessed_at,
            score=score,
            risk=risk,
            analysis=analysis,
            age_months=age_months,
            notes=notes,
        )

    def render_progress_report(
        self,
        *,
        child: Any,
        attempts: Sequence[ProgressAttempt],
        analysis: ProgressAnalysis,
        age_months: int | None = None,
        notes: str | None = None,
    ) -> str:
        """Render the progress report text; ``attempts`` oldest first."""
        return self.render(
            PROGRESS_REPORT_TEMPLATE,
            child=child,
            attempts=attempts,
            analysis=analysis,
            age_months=age_months,
            notes=notes,
        )
