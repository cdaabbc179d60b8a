"""Abstract interface for narrative assessment analysis.

The SDK ships two implementations (see :mod:`screening_core.analysis`): a
template-driven rule-based analyzer and an LLM-backed one.  Anything else
that drafts a narrative for a scored assessment plugs in here.

Typical integration flow::

    result = ScoringEngine().score(answers, definition)
    context = AnalysisContext(
        questionnaire_type=definition.name,
        answers=raw_answers,
        score=result.score,
        risk=result.risk,
        child_age_months=24,
    )
    analysis = await analyzer.analyze(context)
"""

from abc import ABC, abstractmethod

from screening_core.models.analysis import AnalysisContext, AssessmentAnalysis


class AnalysisError(RuntimeError):
    """An analyzer could not produce a result (transport, HTTP or parse error)."""


class AssessmentAnalyzer(ABC):
    """Interface for drafting a narrative analysis of a scored assessment."""

    @abstractmethod
    async def analyze(self, context: AnalysisContext) -> AssessmentAnalysis:
        """Draft a summary, key findings and recommendations.

        Parameters
        ----------
        context:
            Questionnaire type, raw answers, score, risk and (when known)
            the child's age in months.

        Returns
        -------
        AssessmentAnalysis
            The drafted narrative, tagged with ``generated_by``.

        Raises
        ------
        AnalysisError
            If the analyzer cannot produce a result.
        """
        ...
