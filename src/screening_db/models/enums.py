"""Database-level enumerations for the screening backend."""

import enum


class UserRole(str, enum.Enum):
    """Roles asserted by the gateway in the ``X-User-Role`` header."""

    CARETAKER = "caretaker"
    DOCTOR = "doctor"
    ADMIN = "admin"


class Gender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class AccessStatus(str, enum.Enum):
    """Lifecycle of a doctor's access request.

    Transitions:
        pending -> approved  (caretaker approves; doctor joins authorized list)
        pending -> denied    (caretaker declines)
    """

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class ProgressStatus(str, enum.Enum):
    """How far the caretaker got through a questionnaire."""

    DRAFT = "draft"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class ReportType(str, enum.Enum):
    """What a stored report was built from."""

    ASSESSMENT = "assessment"  # one analyzed assessment
    PROGRESS = "progress"      # a child's whole assessment history
