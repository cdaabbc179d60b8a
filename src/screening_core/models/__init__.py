"""Public model re-exports for screening_core.

Consumers should import from ``screening_core.models`` rather than
reaching into sub-modules directly.
"""

# --- Questionnaire definitions ---
from screening_core.models.questionnaire import (
    Question,
    QuestionnaireDefinition,
    RiskLevel,
    ScoringRule,
)

# --- Answers ---
from screening_core.models.answer import (
    AnswerSet,
    AnswerValue,
    LabelAnswer,
    NumberAnswer,
    NumericLabelAnswer,
    decode_answer,
)

# --- Scoring ---
from screening_core.models.scoring import ScoreResult, ScoringMethod

# --- Analysis ---
from screening_core.models.analysis import (
    AnalysisContext,
    AssessmentAnalysis,
    ProgressAnalysis,
    ProgressAttempt,
)

# --- Record views ---
from screening_core.models.records import (
    AccessRequestInfo,
    AssessmentInfo,
    AssessmentProgress,
    AuthorizedChildInfo,
    CaretakerDashboard,
    ChildInfo,
    ChildSearchResult,
    DoctorDashboard,
    Overview,
    QuestionnaireInfo,
    ReportInfo,
)

__all__ = [
    # Questionnaire
    "Question",
    "QuestionnaireDefinition",
    "RiskLevel",
    "ScoringRule",
    # Answers
    "AnswerSet",
    "AnswerValue",
    "LabelAnswer",
    "NumberAnswer",
    "NumericLabelAnswer",
    "decode_answer",
    # Scoring
    "ScoreResult",
    "ScoringMethod",
    # Analysis
    "AnalysisContext",
    "AssessmentAnalysis",
    "ProgressAnalysis",
    "ProgressAttempt",
    # Records
    "AccessRequestInfo",
    "AssessmentInfo",
    "AssessmentProgress",
    "AuthorizedChildInfo",
    "CaretakerDashboard",
    "ChildInfo",
    "ChildSearchResult",
    "DoctorDashboard",
    "Overview",
    "QuestionnaireInfo",
    "ReportInfo",
]
