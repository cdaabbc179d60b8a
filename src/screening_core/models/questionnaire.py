"""Questionnaire definition models.

A questionnaire is authored once by an administrator and is read-only at
scoring time.  It carries three things the scoring engine cares about:

  - questions: ordered prompts shown to the caretaker
  - answer_options: the shared option list (e.g. ``["Yes", "No"]`` or
    ``["0 Never", "1 Sometimes", "2 Often"]``)
  - scoring_rules: score ranges mapped to a risk level, evaluated in
    listed order (first match wins)

The remaining fields are descriptive metadata surfaced to the UI.
"""

from __future__ import annotations

import enum
from typing import List, Optional

from pydantic import BaseModel, Field


class RiskLevel(str, enum.Enum):
    """Categorical severity bucket derived from a numeric score.

    Ordered Low < Medium = Moderate < High.  ``Moderate`` is accepted as a
    synonym bucket because some instruments name their middle band that way.
    """

    LOW = "Low"
    MEDIUM = "Medium"
    MODERATE = "Moderate"
    HIGH = "High"

    @property
    def rank(self) -> int:
        """Ordinal used to compare risk levels (Medium and Moderate tie)."""
        return _RISK_RANK[self]


_RISK_RANK: dict[RiskLevel, int] = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.MODERATE: 1,
    RiskLevel.HIGH: 2,
}


class Question(BaseModel):
    """A single questionnaire prompt."""

    text: str
    order: int


class ScoringRule(BaseModel):
    """One bucket of the score-to-risk mapping.

    ``max_score`` omitted means the range is open-ended upward, which is how
    "score > N means High" is expressed.
    """

    min_score: float
    max_score: Optional[float] = None
    risk_level: RiskLevel
    description: Optional[str] = None

    def matches(self, score: float) -> bool:
        """True if ``score`` falls inside this rule's inclusive range."""
        if score < self.min_score:
            return False
        return self.max_score is None or score <= self.max_score


class QuestionnaireDefinition(BaseModel):
    """Administrator-authored screening instrument.

    Only ``answer_options`` and ``scoring_rules`` influence scoring; a
    definition with neither is legal and scores through the generic
    fallbacks.
    """

    name: str
    full_name: str = ""
    description: str = ""
    questions: List[Question] = Field(default_factory=list)
    answer_options: List[str] = Field(default_factory=list)
    scoring_rules: List[ScoringRule] = Field(default_factory=list)
    scoring_info: str = ""
    duration: str = ""
    age_range: str = ""
    is_active: bool = True

    @property
    def ordered_questions(self) -> list[Question]:
        return sorted(self.questions, key=lambda q: q.order)
