"""Rule-based progress analysis across a child's assessment history.

Every stored assessment counts as one attempt.  Attempts are grouped by
questionnaire type and, for each type scored at least twice, the first and
last attempts are compared:

  - a lower score is an improvement, a higher score a concern
  - a changed risk level is reported with its direction, judged by
    ``RiskLevel.rank`` (improvement, escalation or no change)

The mean of those score changes decides the overall summary, the trend
sentence and the recommendations.
"""

from __future__ import annotations

from typing import Sequence

from screening_core.constants import PROGRESS_SIGNIFICANT_CHANGE
from screening_core.models.analysis import ProgressAnalysis, ProgressAttempt
from screening_core.models.questionnaire import RiskLevel

GENERATED_BY = "rule_based_progress"


def _fmt(value: float) -> str:
    return f"{value:g}"


def risk_direction(before: RiskLevel, after: RiskLevel) -> str:
    if after.rank < before.rank:
        return "improvement"
    if after.rank > before.rank:
        return "escalation"
    return "no change"


def group_by_type(attempts: Sequence[ProgressAttempt]) -> dict[str, list[ProgressAttempt]]:
    """Scored attempts per questionnaire type, oldest first."""
    trends: dict[str, list[ProgressAttempt]] = {}
    for attempt in sorted(attempts, key=lambda a: a.assessed_at):
        if attempt.score is None:
            continue
        trends.setdefault(attempt.questionnaire_type, []).append(attempt)
    return trends


def analyze_progress(child_name: str, attempts: Sequence[ProgressAttempt]) -> ProgressAnalysis:
    """Compare a child's attempts and draft the progress narrative."""
    improvements: list[str] = []
    concerns: list[str] = []
    observations: list[str] = []
    changes: list[float] = []

    for name, history in group_by_type(attempts).items():
        if len(history) < 2:
            continue
        first, last = history[0], history[-1]
        change = last.score - first.score
        changes.append(change)

        if change < 0:
            improvements.append(
                f"{name}: Score improved from {_fmt(first.score)} to {_fmt(last.score)} "
                f"({_fmt(-change)} point decrease)"
            )
        elif change > 0:
            concerns.append(
                f"{name}: Score increased from {_fmt(first.score)} to {_fmt(last.score)} "
                f"(+{_fmt(change)} points)"
            )

        if first.risk is not None and last.risk is not None and first.risk != last.risk:
            observations.append(
                f"{name}: Risk level changed from {first.risk.value} to {last.risk.value} "
                f"({risk_direction(first.risk, last.risk)})"
            )

    overall = sum(changes) / len(changes) if changes else 0.0

    summary = f"Progress analysis over {len(attempts)} assessment attempts for {child_name}. "
    if overall < -PROGRESS_SIGNIFICANT_CHANGE:
        summary += (
            "Overall scores show significant improvement "
            f"(average decrease of {abs(overall):.1f} points)."
        )
    elif overall > PROGRESS_SIGNIFICANT_CHANGE:
        summary += (
            f"Overall scores show increase (average increase of {overall:.1f} points), "
            "requiring attention."
        )
    else:
        summary += "Overall scores remain relatively stable across attempts."

    if overall < 0:
        trend = "Assessment scores show a positive trend with decreasing risk indicators over time."
    elif overall > 0:
        trend = "Assessment scores show increasing trend. Close monitoring recommended."
    else:
        trend = "Assessment scores remain consistent across attempts."

    return ProgressAnalysis(
        overall_summary=summary,
        overall_change=round(overall, 2),
        key_observations=observations or ["Multiple assessment attempts completed"],
        trend_analysis=trend,
        improvement_areas=improvements or ["Continue current interventions and monitoring"],
        concern_areas=concerns or ["No significant areas of increasing concern identified"],
        recommendations=_recommendations(overall, improvements, concerns),
        next_steps=[
            "Continue regular screening assessments",
            "Monitor developmental milestones",
            "Consult with pediatric specialist for comprehensive evaluation",
            "Maintain current intervention strategies" if improvements
            else "Consider additional support services",
        ],
        total_attempts=len(attempts),
        generated_by=GENERATED_BY,
    )


def _recommendations(overall: float, improvements: list[str], concerns: list[str]) -> list[str]:
    if overall < -PROGRESS_SIGNIFICANT_CHANGE:
        recs = [
            "Continue current intervention strategies as they show positive results",
            "Maintain regular monitoring schedule",
        ]
    elif overall > PROGRESS_SIGNIFICANT_CHANGE:
        recs = [
            "Consider intensifying intervention strategies",
            "Increase frequency of professional consultations",
            "Explore additional therapeutic options",
        ]
    else:
        recs = ["Maintain current monitoring and intervention approach"]

    if concerns:
        recs.append("Focus on areas showing increased scores")
        recs.append("Conduct detailed evaluation of concerning areas")
    if improvements:
        recs.append("Reinforce positive changes through continued engagement")
    recs.append("Schedule comprehensive developmental assessment with specialist")
    return recs
