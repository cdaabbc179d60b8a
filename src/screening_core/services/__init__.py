"""Service layer — the operations the REST API exposes.

Each service owns its repositories and takes the caller's ``AsyncSession``
per call; none of them commit.
"""

from screening_core.services.access import AccessService
from screening_core.services.admin import AdminService
from screening_core.services.assessments import AssessmentService
from screening_core.services.children import ChildService, age_in_months
from screening_core.services.dashboard import DashboardService
from screening_core.services.guards import Caller
from screening_core.services.questionnaires import QuestionnaireService
from screening_core.services.reports import ReportService

__all__ = [
    "AccessService",
    "AdminService",
    "AssessmentService",
    "Caller",
    "ChildService",
    "DashboardService",
    "QuestionnaireService",
    "ReportService",
    "age_in_months",
]
