"""Narrative analysis models shared by the analyzers and the report service.

  - AnalysisContext: everything an analyzer may look at for one assessment
  - AssessmentAnalysis: the drafted narrative (summary, findings, advice)
  - ProgressAttempt: one assessment in a child's history
  - ProgressAnalysis: score and risk trends across that history
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from screening_core.models.questionnaire import RiskLevel


class AnalysisContext(BaseModel):
    """Input for an :class:`~screening_core.interfaces.AssessmentAnalyzer`."""

    questionnaire_type: str
    answers: Dict[str, Any] = Field(default_factory=dict)
    score: Optional[Union[int, float]] = None
    risk: RiskLevel
    child_age_months: Optional[int] = None


class AssessmentAnalysis(BaseModel):
    """Drafted narrative for an assessment.

    ``generated_by`` names the analyzer ("rule_based" or "llm:<model>") so a
    reviewing doctor can tell a template from a model draft.
    """

    summary: str
    key_findings: List[str] = Field(default_factory=list)
    recommendations: str = ""
    generated_by: str
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class ProgressAttempt(BaseModel):
    """One stored assessment as input to the progress analysis."""

    assessment_id: uuid.UUID
    questionnaire_type: str
    score: Optional[Union[int, float]] = None
    risk: Optional[RiskLevel] = None
    assessed_at: datetime


class ProgressAnalysis(BaseModel):
    """Trends across a child's assessments.

    ``overall_change`` is the mean score change (last minus first) over the
    questionnaire types assessed at least twice; negative means improving.
    """

    overall_summary: str
    overall_change: float = 0.0
    key_observations: List[str] = Field(default_factory=list)
    trend_analysis: str = ""
    improvement_areas: List[str] = Field(default_factory=list)
    concern_areas: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    total_attempts: int
    generated_by: str = "rule_based_progress"
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
