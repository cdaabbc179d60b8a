"""Scoring output models."""

from __future__ import annotations

import enum
from typing import Union

from pydantic import BaseModel, ConfigDict

from screening_core.models.questionnaire import RiskLevel


class ScoringMethod(str, enum.Enum):
    """Which encoding the engine detected for an AnswerSet."""

    BINARY = "binary"
    OPTION_TABLE = "option_table"
    NUMERIC = "numeric"


class ScoreResult(BaseModel):
    """Immutable result of scoring one AnswerSet.

    Not persisted on its own; the assessment service copies ``score`` and
    ``risk`` onto the Assessment record.
    """

    model_config = ConfigDict(frozen=True)

    score: Union[int, float]
    risk: RiskLevel
    method: ScoringMethod
