"""screening_core — developmental-screening SDK.

Public API:
    ScoringEngine        — scores an AnswerSet against a questionnaire
    check_scoring_rules  — reports gaps/overlaps in a scoring-rule list
    QuestionnaireCatalog — loads the built-in YAML questionnaires
    PromptManager        — renders LLM prompts and report text (Jinja2)

Analysis:
    AssessmentAnalyzer   — ABC for narrative analysis
    RuleBasedAnalyzer    — template analysis keyed by risk level
    LLMAnalyzer          — OpenAI-compatible chat-completions analyzer
    FallbackAnalyzer     — primary analyzer with a fallback on failure
    build_analyzer       — picks LLM+fallback or rule-based from settings

Services (used by the REST API):
    ChildService, QuestionnaireService, AssessmentService,
    AccessService, ReportService, AdminService, DashboardService, Caller
"""

from screening_core.analysis import (
    FallbackAnalyzer,
    LLMAnalyzer,
    RuleBasedAnalyzer,
    build_analyzer,
)
from screening_core.catalog import QuestionnaireCatalog
from screening_core.interfaces import AnalysisError, AssessmentAnalyzer
from screening_core.models import (
    AnswerSet,
    QuestionnaireDefinition,
    RiskLevel,
    ScoreResult,
    ScoringRule,
)
from screening_core.prompt import PromptManager
from screening_core.scoring import ScoringEngine, check_scoring_rules
from screening_core.services import (
    AccessService,
    AdminService,
    AssessmentService,
    Caller,
    ChildService,
    DashboardService,
    QuestionnaireService,
    ReportService,
)

__all__ = [
    # Scoring
    "ScoringEngine",
    "check_scoring_rules",
    "AnswerSet",
    "QuestionnaireDefinition",
    "RiskLevel",
    "ScoreResult",
    "ScoringRule",
    "QuestionnaireCatalog",
    "PromptManager",
    # Analysis
    "AnalysisError",
    "AssessmentAnalyzer",
    "FallbackAnalyzer",
    "LLMAnalyzer",
    "RuleBasedAnalyzer",
    "build_analyzer",
    # Services
    "AccessService",
    "AdminService",
    "AssessmentService",
    "Caller",
    "ChildService",
    "DashboardService",
    "QuestionnaireService",
    "ReportService",
]
