"""Progress analysis tests: per-type trends, risk direction and overall change."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from screening_core.models import ProgressAttempt, RiskLevel
from screening_core.progress import analyze_progress, group_by_type, risk_direction

_START = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _attempts(*entries):
    """(type, score, risk) tuples, one day apart."""
    return [
        ProgressAttempt(
            assessment_id=uuid.uuid4(),
            questionnaire_type=type_,
            score=score,
            risk=RiskLevel(risk) if risk else None,
            assessed_at=_START + timedelta(days=i),
        )
        for i, (type_, score, risk) in enumerate(entries)
    ]


# =====================================================================
# Helpers
# =====================================================================


class TestRiskDirection:
    """Direction of a risk change by rank."""

    @pytest.mark.parametrize("before, after, expected", [
        (RiskLevel.HIGH, RiskLevel.LOW, "improvement"),
        (RiskLevel.LOW, RiskLevel.MEDIUM, "escalation"),
        (RiskLevel.MODERATE, RiskLevel.HIGH, "escalation"),
        (RiskLevel.MEDIUM, RiskLevel.MODERATE, "no change"),
    ])
    def test_direction(self, before, after, expected):
        """Medium and Moderate share a rank."""
        assert risk_direction(before, after) == expected


class TestGroupByType:
    def test_chronological_and_unscored_skipped(self):
        """Attempts are ordered by date; unscored ones are dropped."""
        attempts = _attempts(("A", 1, "Low"), ("B", None, None), ("A", 3, "Low"))
        grouped = group_by_type(list(reversed(attempts)))
        assert list(grouped) == ["A"]
        assert [a.score for a in grouped["A"]] == [1, 3]


# =====================================================================
# Analysis
# =====================================================================


class TestAnalyzeProgress:
    """Rule-based narrative over a child's attempts."""

    def test_stable_history(self):
        """Unchanged scores are stable with the default lists filled in."""
        result = analyze_progress("Sam", _attempts(("A", 4, "Medium"), ("A", 4, "Medium")))

        assert result.total_attempts == 2
        assert result.overall_change == 0
        assert result.overall_summary == (
            "Progress analysis over 2 assessment attempts for Sam. "
            "Overall scores remain relatively stable across attempts."
        )
        assert result.trend_analysis == "Assessment scores remain consistent across attempts."
        assert result.key_observations == ["Multiple assessment attempts completed"]
        assert result.improvement_areas == ["Continue current interventions and monitoring"]
        assert result.concern_areas == ["No significant areas of increasing concern identified"]
        assert result.recommendations == [
            "Maintain current monitoring and intervention approach",
            "Schedule comprehensive developmental assessment with specialist",
        ]
        assert result.generated_by == "rule_based_progress"

    def test_small_change_keeps_stable_summary(self):
        """A change within two points is stable overall but still itemised."""
        result = analyze_progress("Sam", _attempts(("A", 5, "Medium"), ("A", 4, "Medium")))

        assert "relatively stable" in result.overall_summary
        assert result.trend_analysis.startswith("Assessment scores show a positive trend")
        assert result.improvement_areas == ["A: Score improved from 5 to 4 (1 point decrease)"]
        assert "Reinforce positive changes through continued engagement" in result.recommendations
        assert result.next_steps[-1] == "Maintain current intervention strategies"

    def test_overall_change_is_mean_across_types(self):
        """Types assessed once do not contribute to the mean."""
        result = analyze_progress("Sam", _attempts(
            ("A", 10, "High"),
            ("B", 2, "Low"),
            ("C", 3, "Medium"),
            ("A", 4, "Medium"),
            ("B", 8, "High"),
        ))

        assert result.overall_change == 0
        assert len(result.improvement_areas) == 1
        assert result.concern_areas == ["B: Score increased from 2 to 8 (+6 points)"]
        assert result.key_observations == [
            "A: Risk level changed from High to Medium (improvement)",
            "B: Risk level changed from Low to High (escalation)",
        ]
        assert "Focus on areas showing increased scores" in result.recommendations

    def test_fractional_scores(self):
        """Weighted scores keep their decimals."""
        result = analyze_progress("Sam", _attempts(("A", 2.5, "Low"), ("A", 6, "Medium")))
        assert result.concern_areas == ["A: Score increased from 2.5 to 6 (+3.5 points)"]
        assert "average increase of 3.5 points" in result.overall_summary
