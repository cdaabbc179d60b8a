"""ORM models for screening_db."""

from screening_db.models.access_request import AccessRequest
from screening_db.models.assessment import Assessment
from screening_db.models.base import Base
from screening_db.models.child import Child
from screening_db.models.enums import (
    AccessStatus,
    Gender,
    ProgressStatus,
    ReportType,
    UserRole,
)
from screening_db.models.questionnaire import Questionnaire
from screening_db.models.report import Report

__all__ = [
    "Base",
    "AccessRequest",
    "Assessment",
    "Child",
    "Questionnaire",
    "Report",
    "AccessStatus",
    "Gender",
    "ProgressStatus",
    "ReportType",
    "UserRole",
]
