"""Record views — the contract between the service layer and API callers.

These models are intentionally decoupled from the ORM models in
``screening_db`` so that API consumers never see database internals.  They
are built from ORM rows (or any object with matching attributes) through
``model_validate(row)``.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from screening_db.models.enums import AccessStatus, ProgressStatus, ReportType

from screening_core.models.analysis import AssessmentAnalysis, ProgressAnalysis
from screening_core.models.questionnaire import QuestionnaireDefinition, RiskLevel


class ChildInfo(BaseModel):
    """A child profile owned by a caretaker."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    caretaker_id: str
    name: str
    dob: date
    gender: Optional[str] = None
    notes: Optional[str] = None
    medical_history: str = ""
    authorized_doctors: List[str] = Field(default_factory=list)
    created_at: datetime


class AuthorizedChildInfo(ChildInfo):
    """Child profile as seen by a doctor, enriched with the latest result.

    ``status`` is ``completed`` once any assessment exists, else ``pending``.
    """

    last_assessment_at: Optional[datetime] = None
    risk_level: Optional[RiskLevel] = None
    status: Literal["completed", "pending"] = "pending"


class QuestionnaireInfo(QuestionnaireDefinition):
    """A stored questionnaire definition."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AssessmentProgress(BaseModel):
    """How much of the questionnaire the caretaker answered."""

    completed_questions: int = 0
    total_questions: int = 0
    last_answered_at: Optional[datetime] = None
    status: ProgressStatus = ProgressStatus.COMPLETED


class AssessmentInfo(BaseModel):
    """A scored questionnaire submission."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    child_id: uuid.UUID
    caretaker_id: str
    questionnaire_id: Optional[uuid.UUID] = None
    type: str
    answers: Dict[str, Any] = Field(default_factory=dict)
    score: Optional[Union[int, float]] = None
    risk: Optional[RiskLevel] = None
    analysis: Optional[AssessmentAnalysis] = None
    progress: Optional[AssessmentProgress] = None
    reviewed_by_doctor: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("score")
    @classmethod
    def _integral_score(cls, value: Optional[Union[int, float]]) -> Optional[Union[int, float]]:
        # Scores are stored as floats; whole numbers read back as ints
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value


class AccessRequestInfo(BaseModel):
    """A doctor's request to view a child's records."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    doctor_id: str
    child_id: uuid.UUID
    caretaker_id: str
    status: AccessStatus
    message: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime


class ReportInfo(BaseModel):
    """A doctor-authored narrative report.

    Assessment reports carry ``analysis``; progress reports carry ``progress``.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    doctor_id: str
    child_id: uuid.UUID
    assessment_id: Optional[uuid.UUID] = None
    report_type: ReportType = ReportType.ASSESSMENT
    text: str
    analysis: Optional[AssessmentAnalysis] = None
    progress: Optional[ProgressAnalysis] = None
    created_at: datetime


class Overview(BaseModel):
    """Admin dashboard counters."""

    children: int
    questionnaires: int
    assessments: int
    pending_access_requests: int
    assessments_by_risk: Dict[str, int] = Field(default_factory=dict)


class ChildSearchResult(BaseModel):
    """One hit of a child name search."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    caretaker_id: str
    gender: Optional[str] = None


class CaretakerDashboard(BaseModel):
    """Landing-page summary for a caretaker."""

    children_count: int
    latest_reports: List[ReportInfo] = Field(default_factory=list)


class DoctorDashboard(BaseModel):
    """Landing-page summary for a doctor."""

    total_reports: int
    recent_reports: List[ReportInfo] = Field(default_factory=list)
