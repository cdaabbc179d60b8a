"""screening_db — PostgreSQL persistence layer for the screening backend.

ORM models, the async engine factory and one repository per table.  The
FastAPI server and the ``screening-seed`` CLI are its consumers.
"""

from screening_db.engine import (
    dispose_engine,
    get_engine,
    get_session_factory,
    session_scope,
)
from screening_db.models import (
    AccessRequest,
    AccessStatus,
    Assessment,
    Child,
    Questionnaire,
    Report,
    UserRole,
)
from screening_db.repository import (
    AccessRequestRepository,
    AssessmentRepository,
    ChildRepository,
    QuestionnaireRepository,
    ReportRepository,
)

__all__ = [
    "AccessRequest",
    "AccessStatus",
    "Assessment",
    "Child",
    "Questionnaire",
    "Report",
    "UserRole",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "AccessRequestRepository",
    "AssessmentRepository",
    "ChildRepository",
    "QuestionnaireRepository",
    "ReportRepository",
]
